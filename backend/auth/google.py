import logging
import secrets
from dataclasses import dataclass
from urllib.parse import urlencode

import httpx

from backend.auth.errors import ProviderDenied
from backend.core import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GoogleProfile:
    external_id: str
    given_name: str
    family_name: str
    email: str | None = None
    avatar: str | None = None


def generate_state() -> str:
    return secrets.token_urlsafe(32)


def build_authorization_url(state: str) -> str:
    params = {
        "client_id": config.GOOGLE_CLIENT_ID,
        "redirect_uri": config.GOOGLE_CALLBACK_URL,
        "response_type": "code",
        "scope": " ".join(config.GOOGLE_SCOPES),
        "state": state,
        "prompt": "select_account",
    }
    return f"{config.GOOGLE_AUTHORIZATION_ENDPOINT}?{urlencode(params)}"


def profile_from_userinfo(userinfo: dict) -> GoogleProfile:
    external_id = userinfo.get("sub") or userinfo.get("id")
    if not external_id:
        raise ProviderDenied("Google profile is missing a subject id")

    # Google omits family_name for single-name accounts.
    given_name = userinfo.get("given_name") or userinfo.get("name") or ""
    family_name = userinfo.get("family_name") or ""
    return GoogleProfile(
        external_id=str(external_id),
        given_name=given_name,
        family_name=family_name,
        email=userinfo.get("email"),
        avatar=userinfo.get("picture"),
    )


async def exchange_code(code: str, client: httpx.AsyncClient | None = None) -> GoogleProfile:
    """Trade an authorization code for the signed-in Google profile.

    Any transport error or non-2xx answer from Google is reported as
    ``ProviderDenied``; the caller is expected to send the browser back to
    the login page rather than retry.
    """
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=config.GOOGLE_HTTP_TIMEOUT_SECONDS)
    try:
        token_response = await client.post(
            config.GOOGLE_TOKEN_ENDPOINT,
            data={
                "code": code,
                "client_id": config.GOOGLE_CLIENT_ID,
                "client_secret": config.GOOGLE_CLIENT_SECRET,
                "redirect_uri": config.GOOGLE_CALLBACK_URL,
                "grant_type": "authorization_code",
            },
            headers={"Accept": "application/json"},
        )
        token_response.raise_for_status()
        access_token = token_response.json().get("access_token")
        if not access_token:
            raise ProviderDenied("Google token response did not include an access token")

        userinfo_response = await client.get(
            config.GOOGLE_USERINFO_ENDPOINT,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        userinfo_response.raise_for_status()
        return profile_from_userinfo(userinfo_response.json())
    except httpx.HTTPStatusError as exc:
        logger.warning("Google rejected the OAuth exchange: %s", exc.response.status_code)
        raise ProviderDenied(f"Google returned {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        logger.warning("Google OAuth exchange failed: %s", exc)
        raise ProviderDenied("Could not reach Google") from exc
    except ValueError as exc:
        raise ProviderDenied("Google returned a malformed payload") from exc
    finally:
        if owns_client:
            await client.aclose()
