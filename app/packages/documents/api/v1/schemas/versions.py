"""版本接口的响应模型。"""

from app.packages.documents.api.v1.schemas.common import ResponseEnvelope

VersionListResponse = ResponseEnvelope[dict]
VersionDetailResponse = ResponseEnvelope[dict]
VersionCompareResponse = ResponseEnvelope[dict]
VersionMutationResponse = ResponseEnvelope[dict]
