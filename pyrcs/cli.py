"""主命令行接口"""

import asyncio
import logging

import click
from rich.console import Console
from rich.markup import escape

from pyrcs import __version__
from pyrcs.config.loader import merge_project_config
from pyrcs.config.ssh_config import known_hosts_path, resolve_host
from pyrcs.core.auth import build_auth_methods
from pyrcs.core.command import build_remote_command
from pyrcs.core.duration import parse_duration
from pyrcs.core.exceptions import HostRequiredError, KnownHostsError, RcsError
from pyrcs.core.executor import GENERIC_FAILURE, RemoteExecutor
from pyrcs.core.models import Options
from pyrcs.ui.logfile import open_log_sink

console = Console(stderr=True)

LOG_FORMAT = "%(asctime)s [%(name)s][%(levelname)s] %(message)s"


class DurationParamType(click.ParamType):
    """形如 30s、1m30s 的时长参数，转换为秒"""

    name = "duration"

    def convert(self, value, param, ctx):
        if isinstance(value, (int, float)):
            return float(value)
        try:
            return parse_duration(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


DURATION = DurationParamType()


def setup_logging(level: str):
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
    logger = logging.getLogger("pyrcs")
    logger.setLevel(level)
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.addHandler(handler)


@click.command(
    context_settings={
        "help_option_names": ["--help"],
        "allow_interspersed_args": False,
    }
)
@click.version_option(version=__version__)
@click.option("-h", "--host", default="", help="SSH 主机或别名")
@click.option("--dir", "remote_dir", default="", help="远程工作目录")
@click.option("--shell", is_flag=True, help="通过 bash -lc 执行命令")
@click.option("--stdin", is_flag=True, help="把本地 stdin 转发给远程进程")
@click.option("--pty", is_flag=True, help="分配伪终端")
@click.option("--log", "log_path", default="", help="把输出写入日志文件")
@click.option("--append", is_flag=True, help="追加写入日志文件")
@click.option("--timestamps", is_flag=True, help="日志每行添加时间戳")
@click.option("--split", is_flag=True, help="stdout 与 stderr 分别写入日志文件")
@click.option("--identity", default="", help="SSH 私钥路径")
@click.option("--ssh-config", "ssh_config_path", default="", help="SSH config 路径")
@click.option("--config", "config_path", default="", help="项目配置文件路径 (JSON 或 TOML)")
@click.option("--timeout", type=DURATION, default=0.0, help="超时时间，如 30s")
@click.option("--env", multiple=True, help="远程环境变量 KEY=VAL，可重复")
@click.option(
    "-l",
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="诊断日志级别",
)
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def cli(
    ctx,
    host,
    remote_dir,
    shell,
    stdin,
    pty,
    log_path,
    append,
    timestamps,
    split,
    identity,
    ssh_config_path,
    config_path,
    timeout,
    env,
    log_level,
    command,
):
    """在远程主机上执行命令

    `--` 之后（或第一个非选项参数开始）的内容都是远程命令。
    """
    if not command:
        raise click.UsageError("command is required", ctx=ctx)

    setup_logging(log_level)

    opts = Options(
        host=host,
        dir=remote_dir,
        shell=shell,
        stdin=stdin,
        pty=pty,
        log_path=log_path,
        append=append,
        timestamps=timestamps,
        split=split,
        identity=identity,
        ssh_config_path=ssh_config_path,
        config_path=config_path,
        timeout=timeout,
        env=list(env),
        command=list(command),
    )

    try:
        exit_code = asyncio.run(_execute_async(opts))
    except (RcsError, OSError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]", soft_wrap=True)
        ctx.exit(GENERIC_FAILURE)

    ctx.exit(exit_code)


async def _execute_async(opts: Options) -> int:
    """解析配置、选择认证方式并执行远程命令"""
    opts = merge_project_config(opts, opts.config_path)
    if not opts.host:
        raise HostRequiredError()

    target = resolve_host(opts.host, opts.ssh_config_path)
    methods = await build_auth_methods(target, opts.identity)

    known_hosts = known_hosts_path()
    if not known_hosts.is_file():
        raise KnownHostsError(known_hosts, "file not found")

    command = build_remote_command(opts)

    sink = open_log_sink(opts.log_path, opts.append, opts.timestamps, opts.split)
    if sink is None:
        return await RemoteExecutor(known_hosts).run(target, methods, command, opts)

    with sink:
        return await RemoteExecutor(known_hosts, log_sink=sink).run(
            target, methods, command, opts
        )
