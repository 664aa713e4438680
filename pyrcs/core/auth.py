"""认证方式选择

依次尝试 ssh-agent 与私钥文件，各来源失败时只记录日志，
全部来源都没有可用的认证方式时才报错。
"""

import logging
import os
from typing import List, Optional

import asyncssh

from pyrcs.core.exceptions import NoAuthMethodError
from pyrcs.core.models import AuthMethod, Target

logger = logging.getLogger(__name__)

AGENT_SOCK_ENV = "SSH_AUTH_SOCK"


async def probe_agent() -> Optional[AuthMethod]:
    """连接 ssh-agent，失败返回 None"""
    sock = os.environ.get(AGENT_SOCK_ENV, "")
    if not sock:
        return None

    try:
        agent = await asyncssh.connect_agent(sock)
    except (OSError, asyncssh.Error) as e:
        logger.debug("Cannot connect to ssh-agent at %s: %s", sock, e)
        return None

    if agent is None:
        logger.debug("Cannot connect to ssh-agent at %s", sock)
        return None
    return AuthMethod(source=f"agent:{sock}", agent=agent)


def probe_identity_file(path: str) -> Optional[AuthMethod]:
    """读取并解析私钥，失败返回 None"""
    if not path:
        return None

    try:
        with open(os.path.expanduser(path), "rb") as fh:
            data = fh.read()
    except OSError as e:
        logger.debug("Cannot read identity file %s: %s", path, e)
        return None

    try:
        key = asyncssh.import_private_key(data)
    except (asyncssh.KeyImportError, asyncssh.KeyEncryptionError, ValueError) as e:
        logger.debug("Cannot parse identity file %s: %s", path, e)
        return None
    return AuthMethod(source=f"key:{path}", key=key)


async def build_auth_methods(target: Target, identity: str = "") -> List[AuthMethod]:
    """按 agent、私钥的顺序构建候选认证方式"""
    methods = []

    agent = await probe_agent()
    if agent:
        methods.append(agent)

    key = probe_identity_file(identity or target.identity_file)
    if key:
        methods.append(key)

    if not methods:
        raise NoAuthMethodError()

    logger.debug("Offering auth methods: %s", ", ".join(m.source for m in methods))
    return methods
