from typing import Any, Optional

from rbac_api.core.schemas.base import BaseSchema


class ApiResponse(BaseSchema):
    """Uniform response envelope for every endpoint."""
    success: bool = True
    status_code: int
    data: Optional[Any] = None
    error_message: Optional[str] = None

    @classmethod
    def error(cls, status_code: int, message: str, data: Any = None) -> "ApiResponse":
        return cls(success=False, status_code=status_code, error_message=message, data=data)
