import asyncio
import json
from urllib.parse import parse_qs, urlparse

import pytest

from backend.auth import jwt_handler
from backend.auth.errors import ProviderDenied
from backend.auth.google import GoogleProfile
from backend.models.user import User
from backend.routes import auth_routes


class _FakeRequest:
    def __init__(self, *, session=None):
        self.session = session if session is not None else {}


def _location_parts(response):
    parsed = urlparse(response.headers['location'])
    return parsed.path, parse_qs(parsed.query)


def _fake_exchange(profile: GoogleProfile, calls: list | None = None):
    async def exchange_code(code: str) -> GoogleProfile:
        if calls is not None:
            calls.append(code)
        return profile

    return exchange_code


def _run_callback(db, *, code='auth-code', state='state-abc', error=None, session_state='state-abc'):
    request = _FakeRequest(session={'oauth_state': session_state} if session_state else {})
    return asyncio.run(auth_routes.google_callback(request, code=code, state=state, error=error, db=db))


def test_google_login_redirects_to_consent_screen_and_stores_state() -> None:
    request = _FakeRequest()

    response = auth_routes.google_login(request)
    location = response.headers['location']

    assert response.status_code == 307
    assert location.startswith('https://accounts.google.com/')
    assert parse_qs(urlparse(location).query)['state'] == [request.session['oauth_state']]


def test_callback_for_new_user_redirects_to_signup_with_user_id(db, monkeypatch: pytest.MonkeyPatch) -> None:
    profile = GoogleProfile(external_id='google-new', given_name='Grace', family_name='Hopper', email='grace@example.edu')
    monkeypatch.setattr(auth_routes.google, 'exchange_code', _fake_exchange(profile))

    response = _run_callback(db)
    path, query = _location_parts(response)
    user = db.query(User).filter(User.google_id == 'google-new').one()

    assert response.status_code == 302
    assert response.headers['location'].startswith(f'{auth_routes.config.FRONTEND_URL}/signup')
    assert path == '/signup'
    assert query['userId'] == [str(user.id)]
    assert query['message'] == [auth_routes.SIGNUP_MESSAGE]
    assert 'token' not in query
    assert user.role is None


@pytest.mark.parametrize(
    ('role', 'expected_path'),
    [
        ('Researcher', '/collaboratordashboard'),
        ('Admin', '/admindashboard'),
        ('Reviewer', '/reviewerdashboard'),
    ],
)
def test_callback_redirects_onboarded_user_to_role_dashboard(
    db,
    make_user,
    monkeypatch: pytest.MonkeyPatch,
    role: str,
    expected_path: str,
) -> None:
    user = make_user(google_id='google-known', role=role)
    profile = GoogleProfile(external_id='google-known', given_name='Ada', family_name='Lovelace')
    monkeypatch.setattr(auth_routes.google, 'exchange_code', _fake_exchange(profile))

    response = _run_callback(db)
    path, query = _location_parts(response)

    assert response.status_code == 302
    assert path == expected_path
    assert jwt_handler.decode_access_token(query['token'][0])['sub'] == str(user.id)
    assert db.query(User).count() == 1


def test_callback_treats_unrecognized_role_as_failure(db, make_user, monkeypatch: pytest.MonkeyPatch) -> None:
    make_user(google_id='google-odd', role='Superuser')
    profile = GoogleProfile(external_id='google-odd', given_name='Odd', family_name='Role')
    monkeypatch.setattr(auth_routes.google, 'exchange_code', _fake_exchange(profile))

    response = _run_callback(db)
    path, query = _location_parts(response)

    assert response.status_code == 302
    assert path == '/login'
    assert query == {'error': ['auth_failed']}


def test_callback_with_provider_error_never_exchanges_code(db, monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []
    profile = GoogleProfile(external_id='google-x', given_name='X', family_name='Y')
    monkeypatch.setattr(auth_routes.google, 'exchange_code', _fake_exchange(profile, calls))

    response = _run_callback(db, code=None, error='access_denied')
    path, _ = _location_parts(response)

    assert response.status_code == 302
    assert path == '/login'
    assert calls == []
    assert db.query(User).count() == 0


def test_callback_rejects_mismatched_state(db, monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []
    profile = GoogleProfile(external_id='google-x', given_name='X', family_name='Y')
    monkeypatch.setattr(auth_routes.google, 'exchange_code', _fake_exchange(profile, calls))

    response = _run_callback(db, state='forged-state')
    path, query = _location_parts(response)

    assert path == '/login'
    assert query == {'error': ['auth_failed']}
    assert calls == []


def test_callback_rejects_missing_session_state(db, monkeypatch: pytest.MonkeyPatch) -> None:
    profile = GoogleProfile(external_id='google-x', given_name='X', family_name='Y')
    monkeypatch.setattr(auth_routes.google, 'exchange_code', _fake_exchange(profile))

    response = _run_callback(db, session_state=None)
    path, _ = _location_parts(response)

    assert path == '/login'


def test_callback_degrades_to_login_when_exchange_fails(db, monkeypatch: pytest.MonkeyPatch) -> None:
    async def failing_exchange(code: str) -> GoogleProfile:
        raise ProviderDenied('Google returned 400')

    monkeypatch.setattr(auth_routes.google, 'exchange_code', failing_exchange)

    response = _run_callback(db)
    path, query = _location_parts(response)

    assert response.status_code == 302
    assert path == '/login'
    assert query == {'error': ['auth_failed']}


def test_user_data_without_bearer_token_returns_401() -> None:
    response = auth_routes.user_data(token=None, db=None)

    assert response.status_code == 401
    assert json.loads(response.body) == {'loggedIn': False}


def test_user_data_with_invalid_token_returns_403(db) -> None:
    response = auth_routes.user_data(token='not-a-jwt', db=db)

    assert response.status_code == 403
    assert json.loads(response.body) == {'loggedIn': False}


def test_user_data_for_deleted_user_returns_404(db, make_user) -> None:
    user = make_user(role='Researcher')
    token = jwt_handler.create_access_token(subject=str(user.id))
    db.delete(user)
    db.commit()

    response = auth_routes.user_data(token=token, db=db)

    assert response.status_code == 404
    assert json.loads(response.body) == {'loggedIn': False}


def test_user_data_returns_public_profile_only(db, make_user) -> None:
    user = make_user(
        google_id='google-77',
        role='Admin',
        fname='Katherine',
        lname='Johnson',
        email='kj@example.edu',
        institution='NASA',
        department='Flight Research',
    )
    token = jwt_handler.create_access_token(subject=str(user.id))

    body = auth_routes.user_data(token=token, db=db)

    assert body == {
        'loggedIn': True,
        'user': {
            '_id': str(user.id),
            'fname': 'Katherine',
            'lname': 'Johnson',
            'email': 'kj@example.edu',
            'institution': 'NASA',
            'avatar': '',
            'role': 'Admin',
        },
    }


def test_logout_clears_session_and_redirects_to_login() -> None:
    request = _FakeRequest(session={'oauth_state': 'leftover'})

    response = auth_routes.logout(request)

    assert response.status_code == 302
    assert response.headers['location'] == f'{auth_routes.config.FRONTEND_URL}/login'
    assert request.session == {}


def test_callback_for_deactivated_user_issues_no_token(db, make_user, monkeypatch: pytest.MonkeyPatch) -> None:
    make_user(google_id='google-gone', role='Researcher', status=False)
    profile = GoogleProfile(external_id='google-gone', given_name='Gone', family_name='User')
    monkeypatch.setattr(auth_routes.google, 'exchange_code', _fake_exchange(profile))

    response = _run_callback(db)
    path, query = _location_parts(response)

    assert response.status_code == 302
    assert path == '/login'
    assert query == {'error': ['auth_failed']}


def test_user_data_for_deactivated_user_returns_403(db, make_user) -> None:
    user = make_user(role='Researcher', status=False)
    token = jwt_handler.create_access_token(subject=str(user.id))

    response = auth_routes.user_data(token=token, db=db)

    assert response.status_code == 403
    assert json.loads(response.body) == {'loggedIn': False}
