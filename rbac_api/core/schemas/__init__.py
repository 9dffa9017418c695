from rbac_api.core.schemas.base import BaseSchema
from rbac_api.core.schemas.base_filter import BaseFilter, get_base_filter
from rbac_api.core.schemas.api_response import ApiResponse

__all__ = ["ApiResponse", "BaseFilter", "BaseSchema", "get_base_filter"]
