"""远程输出日志文件"""

from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Callable, Dict, Optional

STDOUT = "stdout"
STDERR = "stderr"


def split_log_paths(path: Path) -> Dict[str, Path]:
    """split 模式下的 stdout / stderr 文件路径"""
    return {
        STDOUT: path.with_name(f"{path.stem}.{STDOUT}{path.suffix}"),
        STDERR: path.with_name(f"{path.stem}.{STDERR}{path.suffix}"),
    }


def _timestamp() -> bytes:
    return f"[{datetime.now().astimezone().isoformat(timespec='seconds')}] ".encode()


class LogSink:
    """把远程 stdout / stderr 写入日志文件

    timestamps 打开时每行加时间前缀，不完整的行会缓存到换行或关闭时再写。
    """

    def __init__(
        self,
        path: str,
        append: bool = False,
        timestamps: bool = False,
        split: bool = False,
        clock: Callable[[], bytes] = _timestamp,
    ):
        self.path = Path(path)
        self.append = append
        self.timestamps = timestamps
        self.split = split
        self._clock = clock
        self._files: Dict[str, BinaryIO] = {}
        self._pending: Dict[str, bytes] = {STDOUT: b"", STDERR: b""}

    def open(self) -> "LogSink":
        mode = "ab" if self.append else "wb"
        if self.split:
            paths = split_log_paths(self.path)
        else:
            paths = {STDOUT: self.path}

        for stream, path in paths.items():
            path.parent.mkdir(parents=True, exist_ok=True)
            self._files[stream] = open(path, mode)
        if not self.split:
            self._files[STDERR] = self._files[STDOUT]
        return self

    def write(self, stream: str, data: bytes):
        if not data:
            return
        fh = self._files[stream]
        if not self.timestamps:
            fh.write(data)
            fh.flush()
            return

        buffered = self._pending[stream] + data
        *lines, rest = buffered.split(b"\n")
        for line in lines:
            fh.write(self._clock() + line + b"\n")
        self._pending[stream] = rest
        fh.flush()

    def close(self):
        for stream, rest in self._pending.items():
            if rest and stream in self._files:
                self._files[stream].write(self._clock() + rest + b"\n")
        self._pending = {STDOUT: b"", STDERR: b""}

        for fh in set(self._files.values()):
            fh.close()
        self._files = {}

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()


def open_log_sink(path: str, append: bool, timestamps: bool, split: bool) -> Optional[LogSink]:
    if not path:
        return None
    return LogSink(path, append=append, timestamps=timestamps, split=split)
