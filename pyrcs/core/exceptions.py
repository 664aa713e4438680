"""异常定义"""


class RcsError(Exception):
    """连接前即可判定的致命错误"""


class ConfigError(RcsError):
    def __init__(self, path, reason):
        super().__init__(f"invalid config file {path}: {reason}")
        self.path = path
        self.reason = reason


class SSHConfigError(RcsError):
    def __init__(self, path, reason):
        super().__init__(f"invalid ssh config {path}: {reason}")
        self.path = path
        self.reason = reason


class NoAuthMethodError(RcsError):
    def __init__(self):
        super().__init__("no usable authentication method (agent or identity file)")


class HostRequiredError(RcsError):
    def __init__(self):
        super().__init__("host is required")


class KnownHostsError(RcsError):
    def __init__(self, path, reason):
        super().__init__(f"could not load known hosts {path}: {reason}")
        self.path = path


class MissingExitStatusError(Exception):
    """远程通道关闭时既没有退出码也没有信号"""

    def __init__(self, host):
        super().__init__(f"remote command on {host} exited without an exit status")
        self.host = host
