import asyncio

import httpx
import pytest

from backend.auth import jwt_handler
from backend.client.session_store import (
    FileTokenStorage,
    MemoryTokenStorage,
    SessionStore,
    split_token_from_url,
)
from backend.database import get_db
from backend.main import app

API_URL = 'http://api.test'


@pytest.fixture
def api_client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield lambda: httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=API_URL)
    finally:
        app.dependency_overrides.pop(get_db, None)


def _mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=API_URL)


def test_split_token_from_url_keeps_other_parameters() -> None:
    token, url = split_token_from_url('https://app.test/collaboratordashboard?tab=grants&token=abc.def')

    assert token == 'abc.def'
    assert url == 'https://app.test/collaboratordashboard?tab=grants'


def test_split_token_from_url_without_token() -> None:
    assert split_token_from_url('https://app.test/login') == (None, 'https://app.test/login')


def test_store_reports_loading_until_mounted() -> None:
    store = SessionStore(API_URL, client=_mock_client(lambda request: httpx.Response(401, json={'loggedIn': False})))

    assert store.loading is True
    assert store.is_authenticated is False

    asyncio.run(store.mount('https://app.test/'))

    assert store.loading is False
    assert store.is_authenticated is False


def test_mount_persists_url_token_strips_it_and_verifies(db, make_user, api_client) -> None:
    user = make_user(google_id='google-55', role='Researcher', email='r@example.edu')
    token = jwt_handler.create_access_token(subject=str(user.id))
    storage = MemoryTokenStorage()
    replaced = []

    async def run():
        async with SessionStore(
            API_URL,
            storage=storage,
            current_url=f'https://app.test/collaboratordashboard?token={token}',
            replace_url=replaced.append,
            client=api_client(),
        ) as store:
            return store.state

    state = asyncio.run(run())

    assert state.authenticated is True
    assert state.loading is False
    assert state.user['_id'] == str(user.id)
    assert state.user['role'] == 'Researcher'
    assert storage.get() == token
    assert replaced == ['https://app.test/collaboratordashboard']


def test_login_then_reload_reproduces_profile(db, make_user, api_client, tmp_path) -> None:
    user = make_user(google_id='google-66', role='Reviewer', email='rev@example.edu')
    token = jwt_handler.create_access_token(subject=str(user.id))
    profile = {'_id': str(user.id), 'email': 'rev@example.edu', 'role': 'Reviewer'}
    storage = FileTokenStorage(tmp_path / 'session.json')

    first = SessionStore(API_URL, storage=storage, client=api_client())
    first.login(profile, token)
    asyncio.run(first.close())

    async def reload():
        async with SessionStore(
            API_URL,
            storage=FileTokenStorage(tmp_path / 'session.json'),
            current_url='https://app.test/reviewerdashboard',
            client=api_client(),
        ) as store:
            return store.state

    state = asyncio.run(reload())

    assert first.is_authenticated is True
    assert state.authenticated is True
    assert state.user['_id'] == profile['_id']
    assert state.user['email'] == profile['email']


def test_mount_with_rejected_token_clears_storage() -> None:
    storage = MemoryTokenStorage('expired-token')
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers['Authorization'])
        return httpx.Response(403, json={'loggedIn': False})

    store = SessionStore(API_URL, storage=storage, client=_mock_client(handler))
    state = asyncio.run(store.mount('https://app.test/admindashboard'))

    assert seen == ['Bearer expired-token']
    assert state.authenticated is False
    assert state.user is None
    assert storage.get() is None


def test_mount_treats_network_failure_as_logged_out() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError('connection refused', request=request)

    storage = MemoryTokenStorage('some-token')
    store = SessionStore(API_URL, storage=storage, client=_mock_client(handler))
    state = asyncio.run(store.mount(''))

    assert state.authenticated is False
    assert state.loading is False
    assert storage.get() is None


def test_mount_without_token_does_not_call_api() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError('no verification call expected')

    store = SessionStore(API_URL, client=_mock_client(handler))
    state = asyncio.run(store.mount('https://app.test/login'))

    assert state.authenticated is False
    assert state.loading is False


def test_second_mount_is_refused_while_verification_is_pending() -> None:
    async def run():
        release = asyncio.Event()
        started = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            started.set()
            await release.wait()
            return httpx.Response(200, json={'loggedIn': True, 'user': {'_id': '1', 'email': 'a@b.c'}})

        store = SessionStore(API_URL, storage=MemoryTokenStorage('token'), client=_mock_client(handler))
        first = asyncio.create_task(store.mount(''))
        await started.wait()

        assert store.loading is True
        with pytest.raises(RuntimeError):
            await store.mount('')

        release.set()
        state = await first
        await store.close()
        return state

    state = asyncio.run(run())

    assert state.authenticated is True
    assert state.user == {'_id': '1', 'email': 'a@b.c'}


def test_logout_clears_token_and_navigates_to_login() -> None:
    storage = MemoryTokenStorage()
    navigated = []
    store = SessionStore(API_URL, storage=storage, navigate=navigated.append, client=_mock_client(lambda request: None))
    store.login({'_id': '9', 'email': 'x@example.edu'}, 'a-token')

    store.logout()

    assert storage.get() is None
    assert store.is_authenticated is False
    assert store.user is None
    assert store.loading is False
    assert navigated == ['/login']
    asyncio.run(store.close())


def test_file_token_storage_round_trip(tmp_path) -> None:
    storage = FileTokenStorage(tmp_path / 'nested' / 'token.json')

    assert storage.get() is None
    storage.set('abc')
    assert FileTokenStorage(tmp_path / 'nested' / 'token.json').get() == 'abc'
    storage.clear()
    assert storage.get() is None
    storage.clear()
