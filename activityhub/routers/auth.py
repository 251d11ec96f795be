# OAuth sign-in: provider access token -> ActivityHub access token
from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from activityhub.crud.user_crud import is_new_user
from activityhub.database import get_db
from activityhub.integrations import oauth_userinfo
from activityhub.schemas.auth import OAuthTokenBody, ProviderLiteral, SessionUser, TokenResponse
from activityhub.security import create_access_token
from activityhub.services.account_linking import sign_in

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/{provider}/token", response_model=TokenResponse)
async def post_oauth_token(
    provider: ProviderLiteral,
    body: OAuthTokenBody,
    db: Session = Depends(get_db),
) -> TokenResponse:
    """
    Exchange a provider access token for an ActivityHub bearer token.
    401 with code NoEmail / OAuthAccountNotLinked / InvalidToken when sign-in is refused.
    """
    profile = await oauth_userinfo.fetch_profile(provider, body.access_token)
    user = await run_in_threadpool(sign_in, db, profile)
    return TokenResponse(
        access_token=create_access_token(user.id),
        user=SessionUser(id=user.id, name=user.name, image=user.image, email=user.email),
        is_new_user=is_new_user(user),
    )
