"""远程命令字符串构建"""

from pyrcs.core.models import Options


def shell_quote_payload(payload: str) -> str:
    """把单引号替换为 '\\'' ，以便整体放进单引号中"""
    return payload.replace("'", "'\\''")


def build_remote_command(opts: Options) -> str:
    """按 环境变量 -> cd -> 命令 的顺序拼接远程命令

    argv 模式下命令原样拼接，不做任何转义；
    shell 模式下命令交给 `bash -lc` 执行。
    """
    env_prefix = ""
    if opts.env:
        env_prefix = " && ".join(f"export {item}" for item in opts.env) + " && "

    cd_prefix = f"cd {opts.dir} && " if opts.dir else ""

    payload = " ".join(opts.command)
    if opts.shell:
        payload = f"bash -lc '{shell_quote_payload(payload)}'"

    return f"{env_prefix}{cd_prefix}{payload}"
