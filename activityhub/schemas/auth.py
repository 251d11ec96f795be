# OAuth sign-in schemas

from typing import Literal, Optional

from pydantic import BaseModel, Field

from activityhub.schemas.user import UserInfo

ProviderLiteral = Literal["google", "github", "facebook"]


class OAuthTokenBody(BaseModel):
    """Provider access token obtained by the client from the OAuth flow."""

    access_token: str = Field(..., min_length=1)


class OAuthProfile(BaseModel):
    """Identity returned by a provider, normalized across providers."""

    provider: ProviderLiteral
    provider_account_id: str
    email: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None


class SessionUser(UserInfo):
    email: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: SessionUser
    is_new_user: bool = False
