"""Client-side session state for the single-page frontend.

One ``SessionStore`` is created by whatever owns the root of the UI and is
handed down from there. It is rebuilt from the persisted bearer token on
every page load by asking ``GET /auth/UserData`` who the token belongs to.

    async with SessionStore(api_url, current_url=location, storage=storage,
                            replace_url=history_replace, navigate=go) as store:
        if store.loading:
            render_placeholder()
        elif store.is_authenticated:
            render_dashboard(store.user)
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import httpx

logger = logging.getLogger(__name__)

TOKEN_QUERY_PARAM = 'token'
LOGIN_PATH = '/login'


class MemoryTokenStorage:
    def __init__(self, token: str | None = None):
        self._token = token

    def get(self) -> str | None:
        return self._token

    def set(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class FileTokenStorage:
    """Keeps the token in a small JSON file, surviving process restarts."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def get(self) -> str | None:
        try:
            return json.loads(self.path.read_text()).get('token')
        except FileNotFoundError:
            return None
        except (ValueError, AttributeError):
            logger.warning('Ignoring unreadable token file %s', self.path)
            return None

    def set(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({'token': token}))

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


@dataclass
class SessionState:
    authenticated: bool = False
    user: dict | None = None
    loading: bool = True


def split_token_from_url(url: str) -> tuple[str | None, str]:
    """Return the ``token`` query parameter and the URL without it."""
    parsed = urlparse(url)
    query = parse_qsl(parsed.query, keep_blank_values=True)
    token = None
    remaining = []
    for key, value in query:
        if key == TOKEN_QUERY_PARAM:
            token = value or None
        else:
            remaining.append((key, value))
    return token, urlunparse(parsed._replace(query=urlencode(remaining)))


class SessionStore:
    def __init__(
        self,
        api_url: str,
        storage=None,
        current_url: str = '',
        replace_url: Callable[[str], None] | None = None,
        navigate: Callable[[str], None] | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_url = api_url.rstrip('/')
        self.storage = storage if storage is not None else MemoryTokenStorage()
        self.current_url = current_url
        self._replace_url = replace_url or (lambda url: None)
        self._navigate = navigate or (lambda path: None)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=self.api_url)
        self._verifying = False
        self.state = SessionState()

    async def __aenter__(self) -> 'SessionStore':
        await self.mount(self.current_url)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def is_authenticated(self) -> bool:
        return self.state.authenticated

    @property
    def user(self) -> dict | None:
        return self.state.user

    @property
    def loading(self) -> bool:
        return self.state.loading

    async def mount(self, current_url: str = '') -> SessionState:
        if self._verifying:
            raise RuntimeError('Session verification is already in progress.')

        self._verifying = True
        self.state.loading = True
        try:
            url_token, clean_url = split_token_from_url(current_url)
            if url_token:
                self.storage.set(url_token)
                self.current_url = clean_url
                self._replace_url(clean_url)

            token = self.storage.get()
            if not token:
                self._set_anonymous()
                return self.state

            profile = await self._fetch_profile(token)
            if profile is None:
                self.storage.clear()
                self._set_anonymous()
            else:
                self.state.authenticated = True
                self.state.user = profile
            return self.state
        finally:
            self.state.loading = False
            self._verifying = False

    async def _fetch_profile(self, token: str) -> dict | None:
        try:
            response = await self._client.get(
                '/auth/UserData',
                headers={'Authorization': f'Bearer {token}'},
            )
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning('Could not verify the stored session: %s', exc)
            return None

        if response.status_code != 200 or not isinstance(data, dict):
            logger.info('Stored session rejected with status %s', response.status_code)
            return None
        if not data.get('loggedIn') or not data.get('user'):
            logger.info('Stored session reported as logged out')
            return None
        return data['user']

    def _set_anonymous(self) -> None:
        self.state.authenticated = False
        self.state.user = None

    def login(self, profile: dict, token: str) -> None:
        self.storage.set(token)
        self.state = SessionState(authenticated=True, user=profile, loading=False)

    def logout(self) -> None:
        self.storage.clear()
        self.state = SessionState(authenticated=False, user=None, loading=False)
        self._navigate(LOGIN_PATH)
