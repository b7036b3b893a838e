"""文件与目录路由：浏览、创建/删除目录、上传、审批。"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, File, Form, Query, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from app.packages.documents.api.v1.schemas.files import (
    ApproveBody,
    DirectoryDeleteResponse,
    DirectoryListResponse,
    DirectoryResponse,
    FileListResponse,
    FileResponseEnvelope,
    FolderPathBody,
    UploadResponse,
)
from app.packages.documents.core.dependencies import get_current_active_user, get_db
from app.packages.documents.core.exceptions import InvalidInputError
from app.packages.documents.models.user import User
from app.packages.documents.services.approval_service import approval_service
from app.packages.documents.services.directory_service import directory_service
from app.packages.documents.services.file_service import file_service
from app.packages.documents.utils.path_utils import parse_resource_id

router = APIRouter(prefix="/files", tags=["files"])


@router.get("", response_model=DirectoryListResponse)
def list_directory(
    path: Optional[str] = Query(""),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> DirectoryListResponse:
    """列出目录下当前用户可见的子目录与文件。"""
    return directory_service.list_directory(db, current_user=current_user, path=path)


@router.post("/create-directory", response_model=DirectoryResponse, status_code=201)
def create_directory(
    payload: FolderPathBody,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> DirectoryResponse:
    return directory_service.create_directory(db, current_user=current_user, folder_path=payload.folderPath)


@router.post("/delete-directory", response_model=DirectoryDeleteResponse)
def delete_directory(
    payload: FolderPathBody,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> DirectoryDeleteResponse:
    return directory_service.delete_directory(db, current_user=current_user, folder_path=payload.folderPath)


@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    file: UploadFile = File(...),
    folder_path: str = Form("", alias="folderPath"),
    description: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> UploadResponse:
    """上传文件；同名文件已存在时旧内容归档为新版本。"""
    content = await file.read()
    return file_service.upload_file(
        db,
        current_user=current_user,
        folder_path=folder_path,
        file_name=file.filename,
        content=content,
        description=description,
    )


@router.get("/content", response_class=FileResponse)
def get_file_content(
    file_id: str = Query(..., alias="fileId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return file_service.get_file_content(
        db, current_user=current_user, file_id=parse_resource_id(file_id, "文件 ID")
    )


@router.get("/get-approval-list", response_model=FileListResponse)
def get_approval_list(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> FileListResponse:
    return approval_service.get_approval_list(db, current_user=current_user)


@router.get("/approved-list", response_model=FileListResponse)
def get_decided_list(
    user_id: Optional[int] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> FileListResponse:
    """查询指定用户（缺省为自己）最近做出审批决定的文件。"""
    return approval_service.get_decided_list(db, current_user=current_user, user_id=user_id)


@router.post("/approve", response_model=FileResponseEnvelope)
def approve_file(
    payload: Optional[ApproveBody] = Body(None),
    file_id: Optional[int] = Query(None, alias="fileId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> FileResponseEnvelope:
    """审批通过；文件 ID 取自请求体 ``params.fileId``，也接受查询参数 ``fileId``。"""
    target_id = payload.params.fileId if payload is not None else file_id
    if target_id is None:
        raise InvalidInputError("缺少文件 ID")
    return approval_service.approve(db, current_user=current_user, file_id=target_id)


@router.post("/rejectFile/{file_id}", response_model=FileResponseEnvelope)
def reject_file(
    file_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> FileResponseEnvelope:
    return approval_service.reject(
        db, current_user=current_user, file_id=parse_resource_id(file_id, "文件 ID")
    )
