"""路径工具：统一目录键、文件路径与归档路径的计算规则。

- 目录键以 ``/`` 开头、不以 ``/`` 结尾，根目录表示为空串 ``""``；
- 文件路径为 ``目录键 + "/" + 文件名``，根目录下的文件为 ``/name``；
- 历史版本归档在 ``/{archive}{目录键}/{文件名}/{base}_v{N}{ext}``，每个文件独占一个归档文件夹；
  同一目录下文件与子目录不能重名，因此该文件夹不会与子目录的归档镜像重合。
"""

from __future__ import annotations

import posixpath

from app.packages.documents.core.exceptions import InvalidInputError


def normalize_path(p: str | None) -> str:
    """规范化目录路径：去掉空段与 ``.``，拒绝 ``..``，根目录返回空串。"""
    raw = (p or "").strip().replace("\\", "/")
    segments: list[str] = []
    for segment in raw.split("/"):
        segment = segment.strip()
        if not segment or segment == ".":
            continue
        if segment == "..":
            raise InvalidInputError("路径中不允许包含 '..'")
        segments.append(segment)
    return "/" + "/".join(segments) if segments else ""


def validate_name(name: str | None) -> str:
    """校验单个路径段（目录名或文件名）。"""
    value = (name or "").strip()
    if not value or value in {".", ".."} or "/" in value or "\\" in value:
        raise InvalidInputError("名称不合法")
    return value


def split_path(path: str) -> tuple[str, str]:
    """将规范路径拆分为 ``(父目录键, 名称)``。"""
    if not path:
        return "", ""
    parent, _, name = path.rpartition("/")
    return parent, name


def join_path(directory_key: str, name: str) -> str:
    return f"{directory_key}/{name}"


def ancestor_paths(path: str) -> list[str]:
    """返回全部祖先目录键，由深到浅，不含自身与根目录。"""
    ancestors: list[str] = []
    parent, _ = split_path(path)
    while parent:
        ancestors.append(parent)
        parent, _ = split_path(parent)
    return ancestors


def versioned_name(file_name: str, version_number: int) -> str:
    """``report.txt`` + 3 → ``report_v3.txt``；无扩展名时直接追加后缀。"""
    base, ext = posixpath.splitext(file_name)
    return f"{base}_v{version_number}{ext}"


def archive_path(archive_dir_name: str, directory_key: str, file_name: str, version_number: int) -> str:
    """``/team`` 下 ``report.txt`` 的第 3 版 → ``/Archive/team/report.txt/report_v3.txt``。"""
    return f"{archive_folder(archive_dir_name, directory_key, file_name)}/{versioned_name(file_name, version_number)}"


def archive_folder(archive_dir_name: str, directory_key: str, file_name: str) -> str:
    return f"/{archive_dir_name}{directory_key}/{file_name}"


def archive_mirror(archive_dir_name: str, directory_key: str) -> str:
    """目录在归档树中的镜像目录键。"""
    return f"/{archive_dir_name}{directory_key}"


def parse_version_number(raw: str | int) -> int:
    """解析 URL 中的版本号，非正整数时抛出 ``InvalidInputError``。"""
    text = str(raw).strip()
    if not text.isdigit() or int(text) < 1:
        raise InvalidInputError("版本号必须为正整数")
    return int(text)


def parse_resource_id(raw: str | int, label: str = "资源 ID") -> int:
    text = str(raw).strip()
    if not text.isdigit():
        raise InvalidInputError(f"{label}必须为整数")
    return int(text)
