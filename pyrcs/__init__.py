"""PyRCS - run a command on a remote host over SSH"""

__version__ = "0.1.0"

from .core.models import AuthMethod, Options, ProjectConfig, Target
from .core.command import build_remote_command
from .core.executor import RemoteExecutor, map_exit_status

__all__ = [
    "AuthMethod",
    "Options",
    "ProjectConfig",
    "Target",
    "RemoteExecutor",
    "build_remote_command",
    "map_exit_status",
]
