"""SSH config 解析

通过 ~/.ssh/config（或指定文件）把主机别名解析成连接目标。
"""

import logging
import os
from pathlib import Path

import paramiko

from pyrcs.core.exceptions import SSHConfigError
from pyrcs.core.models import DEFAULT_SSH_PORT, Target

logger = logging.getLogger(__name__)


def default_ssh_config_path() -> Path:
    return Path.home() / ".ssh" / "config"


def known_hosts_path() -> Path:
    return Path.home() / ".ssh" / "known_hosts"


def resolve_host(alias: str, ssh_config_path: str = "") -> Target:
    """解析主机别名

    配置文件不存在时直接使用别名和 22 端口；解析失败抛出 SSHConfigError。
    同一个 key 以第一个匹配的 Host 块为准。
    """
    path = Path(ssh_config_path) if ssh_config_path else default_ssh_config_path()
    if not path.exists():
        logger.debug("SSH config %s not found, using %s:%d", path, alias, DEFAULT_SSH_PORT)
        return Target(host=alias, port=DEFAULT_SSH_PORT)

    try:
        config = paramiko.SSHConfig.from_path(str(path))
        entry = config.lookup(alias)
    except paramiko.ssh_exception.ConfigParseError as e:
        raise SSHConfigError(path, str(e)) from e
    except OSError as e:
        raise SSHConfigError(path, e.strerror or str(e)) from e

    hostname = entry.get("hostname") or alias

    port = DEFAULT_SSH_PORT
    port_value = entry.get("port")
    if port_value:
        try:
            port = int(port_value)
        except ValueError:
            logger.debug("Ignoring invalid port %r for %s", port_value, alias)

    identity_files = entry.get("identityfile") or []
    identity_file = os.path.expanduser(identity_files[0]) if identity_files else ""

    target = Target(
        host=hostname,
        user=entry.get("user", ""),
        port=port,
        identity_file=identity_file,
    )
    logger.debug("Resolved %s to %s", alias, target)
    return target
