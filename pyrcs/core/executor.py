import asyncio
import logging
import os
import shutil
import sys
from pathlib import Path
from typing import BinaryIO, List, Optional

import asyncssh

from pyrcs.core.exceptions import MissingExitStatusError
from pyrcs.core.models import AuthMethod, Options, Target
from pyrcs.ui.logfile import STDERR, STDOUT, LogSink

GENERIC_FAILURE = 1


def map_exit_status(err: Optional[BaseException]) -> int:
    """把执行错误转换成进程退出码

    远程进程的退出码原样返回，其它错误（连接失败、协议错误、超时）统一返回 1。
    """
    if err is None:
        return 0
    if isinstance(err, asyncssh.ProcessError):
        # 被信号终止时 asyncssh 给出的 exit_status 为 -1
        if err.exit_signal:
            return GENERIC_FAILURE
        if err.exit_status is not None:
            return err.exit_status
    return GENERIC_FAILURE


class RemoteExecutor:
    """在单个主机上执行命令，并把输出实时回传到本地"""

    def __init__(
        self,
        known_hosts: Path,
        log_sink: Optional[LogSink] = None,
        stdout: Optional[BinaryIO] = None,
        stderr: Optional[BinaryIO] = None,
    ):
        self.known_hosts = known_hosts
        self.log_sink = log_sink
        self.stdout = stdout or sys.stdout.buffer
        self.stderr = stderr or sys.stderr.buffer
        self.logger = logging.getLogger(__name__)

    async def run(
        self, target: Target, methods: List[AuthMethod], command: str, opts: Options
    ) -> int:
        """执行命令并返回退出码"""
        err = None
        try:
            if opts.timeout > 0:
                await asyncio.wait_for(
                    self._run(target, methods, command, opts), timeout=opts.timeout
                )
            else:
                await self._run(target, methods, command, opts)

        except asyncio.TimeoutError as e:
            err = e
            self.logger.warning(
                "Timeout after %ss executing command on %s", opts.timeout, target.host
            )

        except asyncssh.ProcessError as e:
            err = e
            self.logger.info(
                "Remote command exited with status %s on %s", e.exit_status, target.host
            )

        except MissingExitStatusError as e:
            err = e
            self.logger.warning("%s", e)

        except (asyncssh.Error, OSError) as e:
            err = e
            self.logger.error("SSH error for %s: %s", target.host, e)

        return map_exit_status(err)

    async def _run(
        self, target: Target, methods: List[AuthMethod], command: str, opts: Options
    ):
        client_keys = []
        for method in methods:
            client_keys.extend(await method.client_keys())

        # 准备连接参数
        connect_kwargs = {
            "host": target.host,
            "port": target.port,
            "client_keys": client_keys,
            "agent_path": None,
            "known_hosts": str(self.known_hosts),
            "config": None,
        }
        if target.user:
            connect_kwargs["username"] = target.user
        if opts.timeout > 0:
            connect_kwargs["connect_timeout"] = opts.timeout

        process_kwargs = {
            "encoding": None,
            "stdin": sys.stdin.buffer if opts.stdin else asyncssh.DEVNULL,
        }
        if opts.pty:
            process_kwargs["term_type"] = os.environ.get("TERM", "xterm-256color")
            process_kwargs["term_size"] = tuple(shutil.get_terminal_size())

        self.logger.debug("Running %r on %s:%d", command, target.host, target.port)
        async with asyncssh.connect(**connect_kwargs) as conn:
            process = await conn.create_process(command, **process_kwargs)
            await asyncio.gather(
                self._read_stream(process.stdout, STDOUT, self.stdout),
                self._read_stream(process.stderr, STDERR, self.stderr),
            )
            completed = await process.wait(check=True)
            if completed.exit_status is None:
                raise MissingExitStatusError(target.host)

    async def _read_stream(self, stream, name: str, local: BinaryIO):
        """读取远程流并写到本地与日志文件"""
        while True:
            data = await stream.read(4096)
            if not data:
                break
            local.write(data)
            local.flush()
            if self.log_sink:
                self.log_sink.write(name, data)
