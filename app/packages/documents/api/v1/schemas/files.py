"""文件与目录接口的请求/响应模型。"""

from typing import Optional

from pydantic import BaseModel, Field

from app.packages.documents.api.v1.schemas.common import ResponseEnvelope


class FolderPathBody(BaseModel):
    folderPath: str = Field(..., min_length=1)


class ApproveParams(BaseModel):
    fileId: int = Field(..., ge=1)


class ApproveBody(BaseModel):
    """审批请求体沿用 ``{"params": {"fileId": 1}}`` 的结构。"""

    params: ApproveParams


class FileItem(BaseModel):
    id: int
    name: str
    path: str
    directory_id: Optional[int] = None
    directory_path: str
    created_by: int
    approval_status: str
    approved_by: Optional[int] = None
    description: Optional[str] = None
    create_time: Optional[str] = None
    update_time: Optional[str] = None


class DirectoryItem(BaseModel):
    id: int
    name: str
    path: str
    parent_id: Optional[int] = None
    created_by: int
    create_time: Optional[str] = None


class UploadResult(BaseModel):
    file: FileItem
    version_number: Optional[int] = None


DirectoryListResponse = ResponseEnvelope[dict]
DirectoryResponse = ResponseEnvelope[DirectoryItem]
DirectoryDeleteResponse = ResponseEnvelope[dict]
UploadResponse = ResponseEnvelope[UploadResult]
FileResponseEnvelope = ResponseEnvelope[FileItem]
FileListResponse = ResponseEnvelope[dict]
