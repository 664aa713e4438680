from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

import marshmallow

if TYPE_CHECKING:
    import asyncssh


DEFAULT_SSH_PORT = 22


@dataclass
class Options:
    """合并后的执行参数

    字符串为空表示未设置，timeout 为 0 表示不限时。
    """

    host: str = ""
    dir: str = ""
    shell: bool = False
    stdin: bool = False
    pty: bool = False
    log_path: str = ""
    append: bool = False
    timestamps: bool = False
    split: bool = False
    identity: str = ""
    ssh_config_path: str = ""
    config_path: str = ""
    timeout: float = 0.0
    env: List[str] = field(default_factory=list)
    command: List[str] = field(default_factory=list)


@dataclass
class SSHSection:
    host: str = ""
    identity: str = ""
    ssh_config: str = ""

    class Meta:
        unknown = marshmallow.EXCLUDE


@dataclass
class ExecSection:
    dir: str = ""
    pty: bool = False
    shell: bool = False
    stdin: bool = False
    timeout: str = ""

    class Meta:
        unknown = marshmallow.EXCLUDE


@dataclass
class LogSection:
    path: str = ""
    append: bool = False
    timestamps: bool = False
    split: bool = False

    class Meta:
        unknown = marshmallow.EXCLUDE


@dataclass(frozen=True)
class ProjectConfig:
    """project.toml / project.json 文件模型"""

    ssh: SSHSection = field(default_factory=SSHSection)
    exec: ExecSection = field(default_factory=ExecSection)
    log: LogSection = field(default_factory=LogSection)
    env: Dict[str, str] = field(default_factory=dict)

    class Meta:
        unknown = marshmallow.EXCLUDE


@dataclass(frozen=True)
class Target:
    """解析后的连接目标"""

    host: str
    user: str = ""
    port: int = DEFAULT_SSH_PORT
    identity_file: str = ""


@dataclass
class AuthMethod:
    """候选认证方式，agent 或已解析的私钥二选一"""

    source: str
    agent: Optional["asyncssh.SSHAgentClient"] = None
    key: Optional["asyncssh.SSHKey"] = None

    async def client_keys(self) -> list:
        if self.agent is not None:
            try:
                return list(await self.agent.get_keys())
            finally:
                self.agent.close()
                await self.agent.wait_closed()
        if self.key is not None:
            return [self.key]
        return []
