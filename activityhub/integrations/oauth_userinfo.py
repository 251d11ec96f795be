# OAuth provider userinfo lookup (Google / GitHub / Facebook)

from typing import Any, Dict, Optional

import httpx

from activityhub.config import OAUTH_HTTP_TIMEOUT_SEC
from activityhub.errors import AuthError
from activityhub.schemas.auth import OAuthProfile

GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"
GITHUB_USER_URL = "https://api.github.com/user"
GITHUB_EMAILS_URL = "https://api.github.com/user/emails"
FACEBOOK_ME_URL = "https://graph.facebook.com/me"


def _standardize(provider: str, doc: Dict[str, Any]) -> OAuthProfile:
    """Map a provider document onto the common fields (provider_account_id, email, name, image)."""
    if provider == "google":
        return OAuthProfile(
            provider="google",
            provider_account_id=str(doc.get("sub") or ""),
            email=doc.get("email"),
            name=doc.get("name"),
            image=doc.get("picture"),
        )
    if provider == "github":
        return OAuthProfile(
            provider="github",
            provider_account_id=str(doc.get("id") or ""),
            email=doc.get("email"),
            name=doc.get("name") or doc.get("login"),
            image=doc.get("avatar_url"),
        )
    picture = ((doc.get("picture") or {}).get("data") or {}).get("url")
    return OAuthProfile(
        provider="facebook",
        provider_account_id=str(doc.get("id") or ""),
        email=doc.get("email"),
        name=doc.get("name"),
        image=picture,
    )


async def _github_primary_email(client: httpx.AsyncClient, headers: Dict[str, str]) -> Optional[str]:
    """GitHub leaves ``email`` null for private addresses; fall back to the primary verified one."""
    resp = await client.get(GITHUB_EMAILS_URL, headers=headers)
    if resp.status_code != 200:
        return None
    for entry in resp.json():
        if entry.get("primary") and entry.get("verified"):
            return entry.get("email")
    return None


async def fetch_profile(
    provider: str,
    access_token: str,
    client: Optional[httpx.AsyncClient] = None,
) -> OAuthProfile:
    """
    Look up the signed-in identity for a provider access token.

    Raises:
        AuthError: unknown provider, rejected token or unusable response.
    """
    if provider == "google":
        url, params = GOOGLE_USERINFO_URL, None
        headers = {"Authorization": f"Bearer {access_token}"}
    elif provider == "github":
        url, params = GITHUB_USER_URL, None
        headers = {"Authorization": f"Bearer {access_token}", "Accept": "application/vnd.github+json"}
    elif provider == "facebook":
        url, params = FACEBOOK_ME_URL, {"fields": "id,name,email,picture", "access_token": access_token}
        headers = {}
    else:
        raise AuthError(f"Unsupported provider: {provider}", code="UnsupportedProvider")

    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=OAUTH_HTTP_TIMEOUT_SEC)
    try:
        try:
            resp = await client.get(url, params=params, headers=headers)
        except httpx.HTTPError:
            raise AuthError(f"Could not reach {provider}", code="ProviderUnavailable") from None
        if resp.status_code != 200:
            raise AuthError(f"{provider} rejected the access token (HTTP {resp.status_code})", code="InvalidToken")

        profile = _standardize(provider, resp.json())
        if provider == "github" and not profile.email:
            profile.email = await _github_primary_email(client, headers)
    finally:
        if owns_client:
            await client.aclose()

    if not profile.provider_account_id:
        raise AuthError(f"{provider} returned no account id", code="InvalidToken")
    return profile
