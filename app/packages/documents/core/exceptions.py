"""异常处理模块：定义统一的业务异常与响应格式。"""

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from app.packages.documents.core.constants import (
    HTTP_STATUS_BAD_REQUEST,
    HTTP_STATUS_CONFLICT,
    HTTP_STATUS_FORBIDDEN,
    HTTP_STATUS_INTERNAL_SERVER_ERROR,
    HTTP_STATUS_NOT_FOUND,
)
from app.packages.documents.core.logger import get_request_id, logger


class AppException(HTTPException):
    """携带统一响应结构的业务异常，方便在全局处理中转换响应体。"""

    def __init__(self, msg: str, code: int = status.HTTP_400_BAD_REQUEST, data=None) -> None:
        super().__init__(status_code=code, detail=msg)
        self.data = data


class NotFoundError(AppException):
    """资源或路径不存在。"""

    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, HTTP_STATUS_NOT_FOUND, data)


class ForbiddenError(AppException):
    """角色或权限校验未通过。"""

    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, HTTP_STATUS_FORBIDDEN, data)


class ConflictError(AppException):
    """唯一性冲突或状态不允许当前操作。"""

    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, HTTP_STATUS_CONFLICT, data)


class InvalidInputError(AppException):
    """请求参数不合法（路径格式、版本号、缺失字段等）。"""

    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, HTTP_STATUS_BAD_REQUEST, data)


class InternalError(AppException):
    """数据库或文件系统的意外失败。"""

    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, HTTP_STATUS_INTERNAL_SERVER_ERROR, data)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:  # pragma: no cover - framework glue
    """将 FastAPI 的 ``HTTPException`` 转换为统一响应格式。"""
    payload = {"msg": exc.detail, "data": getattr(exc, "data", None), "code": exc.status_code}
    return JSONResponse(status_code=exc.status_code, content=payload, headers=getattr(exc, "headers", None))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # pragma: no cover - framework glue
    """兜底处理：将未捕获异常转换为标准的 500 响应结构。"""
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    payload = {
        "msg": "服务器内部错误",
        "data": {"request_id": get_request_id()},
        "code": status.HTTP_500_INTERNAL_SERVER_ERROR,
    }
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)
