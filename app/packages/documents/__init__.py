"""文档库业务包：目录树、文件版本、审批与资源权限。"""

from app.packages.types import AppPackage

from .api.v1 import api_router
from .core.config import get_settings
from .core.exceptions import generic_exception_handler, http_exception_handler
from .core.logger import logger, set_request_id, setup_logging
from .core.responses import create_response
from .db.init_db import init_db

package = AppPackage(
    name="documents",
    api_router=api_router,
    get_settings=get_settings,
    setup_logging=setup_logging,
    logger=logger,
    init_db=init_db,
    create_response=create_response,
    http_exception_handler=http_exception_handler,
    generic_exception_handler=generic_exception_handler,
    set_request_id=set_request_id,
)

__all__ = ["package", "api_router", "get_settings"]
