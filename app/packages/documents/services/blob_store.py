"""本地 Blob 存储：以逻辑路径为键读写上传根目录下的文件。

写入流程采用“先暂存、后提交”：字节先写到目标同目录下的临时文件，
数据库 ``flush`` 成功后再通过 ``os.replace`` 原子替换到规范路径。
``BlobTransaction`` 记录已完成的文件系统动作，失败时按逆序补偿。
"""

from __future__ import annotations

import mimetypes
import os
import shutil
import uuid
from pathlib import Path
from typing import Callable, Optional

from fastapi.responses import FileResponse

from app.packages.documents.core.config import get_settings
from app.packages.documents.core.exceptions import InternalError, InvalidInputError, NotFoundError
from app.packages.documents.core.logger import logger


def _norm_mime(path: str) -> str:
    mime, _ = mimetypes.guess_type(path)
    return mime or "application/octet-stream"


class LocalBlobStore:
    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()
        if not self.root.exists():
            try:
                self.root.mkdir(parents=True, exist_ok=True)
            except OSError as exc:  # pragma: no cover - 极端情况下可能失败
                raise InternalError(f"无法创建上传根目录: {exc}") from exc

    # 统一的安全路径拼接，防止路径遍历
    def _resolve(self, key: str) -> Path:
        rel = (key or "").strip().lstrip("/")
        candidate = (self.root / rel).resolve()
        try:
            candidate.relative_to(self.root)
        except ValueError as exc:
            raise InvalidInputError("非法路径: 越权访问") from exc
        return candidate

    def exists(self, key: str) -> bool:
        return self._resolve(key).is_file()

    def dir_exists(self, key: str) -> bool:
        return self._resolve(key).is_dir()

    def read(self, key: str) -> bytes:
        target = self._resolve(key)
        if not target.is_file():
            raise NotFoundError("文件内容不存在")
        return target.read_bytes()

    def download(self, key: str, *, filename: Optional[str] = None) -> FileResponse:
        target = self._resolve(key)
        if not target.is_file():
            raise NotFoundError("文件内容不存在")
        return FileResponse(
            str(target),
            media_type=_norm_mime(str(target)),
            filename=filename or target.name,
        )

    def makedirs(self, key: str) -> None:
        """创建目录，已存在时忽略。"""
        self._resolve(key).mkdir(parents=True, exist_ok=True)

    def stage(self, key: str, data: bytes) -> Path:
        """把字节写入目标同目录的临时文件，返回暂存路径。"""
        target = self._resolve(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        staged = target.parent / f".{target.name}.{uuid.uuid4().hex}.part"
        staged.write_bytes(data)
        return staged

    def commit(self, staged: Path, key: str) -> None:
        os.replace(staged, self._resolve(key))

    def discard(self, staged: Path) -> None:
        staged.unlink(missing_ok=True)

    def copy(self, src_key: str, dst_key: str) -> None:
        source = self._resolve(src_key)
        target = self._resolve(dst_key)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, target)

    def remove(self, key: str) -> bool:
        target = self._resolve(key)
        if not target.is_file():
            return False
        target.unlink()
        return True

    def remove_tree(self, key: str) -> bool:
        target = self._resolve(key)
        if target == self.root:
            raise InvalidInputError("不允许删除上传根目录")
        if not target.is_dir():
            return False
        shutil.rmtree(target)
        return True


class BlobTransaction:
    """记录一组文件系统动作的补偿操作，失败时逆序执行。"""

    def __init__(self, store: LocalBlobStore):
        self.store = store
        self._undo: list[tuple[str, Callable[[], object]]] = []
        self._staged: list[Path] = []

    def stage(self, key: str, data: bytes) -> Path:
        staged = self.store.stage(key, data)
        self._staged.append(staged)
        return staged

    def copy(self, src_key: str, dst_key: str) -> None:
        self.store.copy(src_key, dst_key)
        self._undo.append((f"remove {dst_key}", lambda: self.store.remove(dst_key)))

    def commit(self, staged: Path, key: str, *, restore_from: Optional[str] = None) -> None:
        """原子替换规范路径；补偿时从 ``restore_from`` 拷回旧内容，没有旧内容则删除。"""
        self.store.commit(staged, key)
        self._staged.remove(staged)
        if restore_from:
            self._undo.append((f"restore {key}", lambda: self.store.copy(restore_from, key)))
        else:
            self._undo.append((f"remove {key}", lambda: self.store.remove(key)))

    def finish(self) -> None:
        self._undo.clear()
        for staged in self._staged:
            self.store.discard(staged)
        self._staged.clear()

    def rollback(self) -> None:
        # 补偿动作逆序执行；单个补偿失败只记录日志，继续处理后续动作
        for label, action in reversed(self._undo):
            try:
                action()
            except OSError:
                logger.exception("Blob compensation failed: %s", label)
        self._undo.clear()
        for staged in self._staged:
            self.store.discard(staged)
        self._staged.clear()


_store: Optional[LocalBlobStore] = None


def get_blob_store() -> LocalBlobStore:
    """按当前配置返回 Blob 存储单例；上传根目录变化时重新创建。"""
    global _store
    root = get_settings().upload_directory.resolve()
    if _store is None or _store.root != root:
        _store = LocalBlobStore(root)
    return _store
