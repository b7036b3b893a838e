"""版本路由：列表、详情、对比、恢复与删除。

版本号以字符串接收并在服务层解析，非数字时返回 400。
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.packages.documents.api.v1.schemas.versions import (
    VersionCompareResponse,
    VersionDetailResponse,
    VersionListResponse,
    VersionMutationResponse,
)
from app.packages.documents.core.dependencies import get_current_active_user, get_db
from app.packages.documents.models.user import User
from app.packages.documents.services.version_service import version_service
from app.packages.documents.utils.path_utils import parse_resource_id

router = APIRouter(prefix="/versions", tags=["versions"])


@router.get("/{file_id}", response_model=VersionListResponse)
def list_versions(
    file_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> VersionListResponse:
    return version_service.list_versions(
        db, current_user=current_user, file_id=parse_resource_id(file_id, "文件 ID")
    )


@router.get("/{file_id}/compare/{first}/{second}", response_model=VersionCompareResponse)
def compare_versions(
    file_id: str,
    first: str,
    second: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> VersionCompareResponse:
    return version_service.compare_versions(
        db,
        current_user=current_user,
        file_id=parse_resource_id(file_id, "文件 ID"),
        first=first,
        second=second,
    )


@router.get("/{file_id}/{version_number}", response_model=VersionDetailResponse)
def get_version(
    file_id: str,
    version_number: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> VersionDetailResponse:
    return version_service.get_version(
        db,
        current_user=current_user,
        file_id=parse_resource_id(file_id, "文件 ID"),
        version_number=version_number,
    )


@router.post("/{file_id}/restore/{version_number}", response_model=VersionMutationResponse)
def restore_version(
    file_id: str,
    version_number: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> VersionMutationResponse:
    return version_service.restore_version(
        db,
        current_user=current_user,
        file_id=parse_resource_id(file_id, "文件 ID"),
        version_number=version_number,
    )


@router.delete("/{file_id}/{version_number}", response_model=VersionMutationResponse)
def delete_version(
    file_id: str,
    version_number: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> VersionMutationResponse:
    return version_service.delete_version(
        db,
        current_user=current_user,
        file_id=parse_resource_id(file_id, "文件 ID"),
        version_number=version_number,
    )
