"""时长字符串解析，格式如 300ms、1.5h、2h45m"""

import re

_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_PART_PATTERN = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text: str) -> float:
    """解析时长字符串，返回秒数；格式错误抛出 ValueError"""
    s = text.strip()
    if not s:
        raise ValueError("empty duration")

    sign = 1.0
    if s[0] in "+-":
        sign = -1.0 if s[0] == "-" else 1.0
        s = s[1:]

    if s == "0":
        return 0.0

    total = 0.0
    pos = 0
    while pos < len(s):
        match = _PART_PATTERN.match(s, pos)
        if not match:
            raise ValueError(f"invalid duration {text!r}")
        total += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()

    if pos == 0:
        raise ValueError(f"invalid duration {text!r}")
    return sign * total
