"""常量定义：集中维护状态码与认证相关的固定取值。"""

HTTP_STATUS_OK = 200
HTTP_STATUS_CREATED = 201
HTTP_STATUS_BAD_REQUEST = 400
HTTP_STATUS_UNAUTHORIZED = 401
HTTP_STATUS_FORBIDDEN = 403
HTTP_STATUS_NOT_FOUND = 404
HTTP_STATUS_CONFLICT = 409
HTTP_STATUS_INTERNAL_SERVER_ERROR = 500

ACCESS_TOKEN_TYPE = "bearer"

# 以下扩展名按二进制内容处理：不做文本解码，也不参与版本对比
BINARY_EXTENSIONS = frozenset(
    {
        ".pdf", ".ppt", ".pptx", ".doc", ".docx",
        ".xls", ".xlsx", ".jpg", ".jpeg", ".png",
        ".gif", ".mp3", ".mp4", ".zip", ".rar",
    }
)
