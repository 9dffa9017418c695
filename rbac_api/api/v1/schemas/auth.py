from typing import List, Optional

from pydantic import AliasChoices, Field

from rbac_api.api.v1.shared.rbac_types import RoleName
from rbac_api.core.schemas import BaseSchema


# Required fields are optional at the schema level so the auth service can
# report which constraint failed in its own words.
class SignUpRequest(BaseSchema):
    email: Optional[str] = None
    password: Optional[str] = None
    username: Optional[str] = None
    firstname: Optional[str] = None
    last_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("lastname", "lastName", "last_name"),
    )
    image: Optional[str] = None
    roles: Optional[List[RoleName]] = None


class SignInRequest(BaseSchema):
    email: Optional[str] = None
    password: Optional[str] = None


class RefreshTokenRequest(BaseSchema):
    refresh_token: Optional[str] = None
