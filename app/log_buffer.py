from __future__ import annotations
from collections import deque
from typing import Deque, List
import os
import sys
import time

_MAX = 400
_buf: Deque[str] = deque(maxlen=_MAX)

# Set SANDFALL_LOG_STDERR=1 to echo every line to stderr as well.
_ECHO = os.environ.get("SANDFALL_LOG_STDERR", "").strip().lower() in ("1", "true", "yes", "on")


def push(line: str) -> None:
    _buf.append(str(line))
    if _ECHO:
        sys.stderr.write(str(line) + "\n")


def log(tag: str, msg: str) -> None:
    push(f"{time.strftime('%H:%M:%S')} [{tag}] {msg}")


def tail(n: int = 200) -> List[str]:
    if n <= 0:
        return []
    return list(_buf)[-n:]


def clear() -> None:
    _buf.clear()
