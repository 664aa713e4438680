"""配置模块

- loader: 项目配置文件 (project.toml / project.json) 的发现与合并
- ssh_config: 基于 ~/.ssh/config 的主机别名解析
"""

from .loader import find_config_file, merge_options, merge_project_config
from .ssh_config import known_hosts_path, resolve_host

__all__ = [
    "find_config_file",
    "merge_options",
    "merge_project_config",
    "known_hosts_path",
    "resolve_host",
]
