from typing import Optional

from rbac_api.api.v1.schemas.users import UserRead
from rbac_api.core.schemas import BaseSchema


class SignInResult(BaseSchema):
    user: UserRead
    access_token: str
    refresh_token: str


class RefreshResult(BaseSchema):
    access_token: str
    # Only set when refresh-token rotation is enabled
    refresh_token: Optional[str] = None
