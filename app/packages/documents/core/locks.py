"""进程内咨询锁：串行化同一子树或同一文件上的写操作。

- 目录树锁：以路径的顶层段为键，目录创建/删除、级联授权/撤销、上传、版本恢复与审批
  在同一顶层子树内串行执行；
- 文件锁：以文件规范路径为键，避免 ``max + 1`` 计算版本号时出现重复。

需要两把锁时一律先取目录树锁再取文件锁。

锁仅在单进程内生效，多进程部署时仍由数据库唯一约束兜底。
"""

from __future__ import annotations

import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Iterator


class KeyedLock:
    """按键分配的可重入锁集合。"""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: defaultdict[str, threading.RLock] = defaultdict(threading.RLock)

    def _get(self, key: str) -> threading.RLock:
        with self._guard:
            return self._locks[key]

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        lock = self._get(key)
        with lock:
            yield


_tree_locks = KeyedLock()
_file_locks = KeyedLock()


def tree_key(path: str) -> str:
    """返回路径所在顶层子树的键，根目录为空串。"""
    segments = [segment for segment in (path or "").split("/") if segment]
    return segments[0] if segments else ""


@contextmanager
def tree_lock(path: str) -> Iterator[None]:
    with _tree_locks.hold(tree_key(path)):
        yield


@contextmanager
def file_lock(file_path: str) -> Iterator[None]:
    with _file_locks.hold(file_path):
        yield
