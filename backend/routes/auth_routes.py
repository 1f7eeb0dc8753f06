import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth import directory, google, jwt_handler
from backend.auth.dependencies import get_bearer_token, verify_token
from backend.auth.errors import (
    AccountDeactivated,
    AuthError,
    MissingToken,
    ProviderDenied,
    TokenInvalid,
    UnrecognizedRole,
    UserNotFound,
)
from backend.core import config
from backend.database import get_db
from backend.models.user import ROLE_ADMIN, ROLE_RESEARCHER, ROLE_REVIEWER, User, public_profile

logger = logging.getLogger(__name__)

router = APIRouter(tags=['auth'])

OAUTH_STATE_SESSION_KEY = 'oauth_state'
SIGNUP_MESSAGE = 'You need to create an account before you log in.'
ROLE_DESTINATIONS = {
    ROLE_RESEARCHER: '/collaboratordashboard',
    ROLE_ADMIN: '/admindashboard',
    ROLE_REVIEWER: '/reviewerdashboard',
}


def build_frontend_url(path: str, query: dict | None = None) -> str:
    url = f'{config.FRONTEND_URL}{path}'
    if query:
        url = f'{url}?{urlencode(query)}'
    return url


def login_failure_url() -> str:
    return build_frontend_url('/login', {'error': 'auth_failed'})


def resolve_login_redirect(user: User) -> str:
    if not user.status:
        raise AccountDeactivated(f'User {user.id} is deactivated')

    if not user.is_onboarded:
        return build_frontend_url('/signup', {'userId': user.id, 'message': SIGNUP_MESSAGE})

    destination = ROLE_DESTINATIONS.get(user.role)
    if destination is None:
        raise UnrecognizedRole(f'User {user.id} has unrecognized role {user.role!r}')

    token = jwt_handler.create_access_token(subject=str(user.id))
    return build_frontend_url(destination, {'token': token})


def check_oauth_state(request: Request, state: str | None) -> None:
    expected = request.session.pop(OAUTH_STATE_SESSION_KEY, None)
    if not expected or state != expected:
        raise ProviderDenied('OAuth state mismatch')


@router.get('/google')
def google_login(request: Request):
    state = google.generate_state()
    request.session[OAUTH_STATE_SESSION_KEY] = state
    return RedirectResponse(url=google.build_authorization_url(state))


@router.get('/google/callback')
async def google_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    db: Session = Depends(get_db),
):
    try:
        if error:
            raise ProviderDenied(f'Google reported {error}')
        if not code:
            raise ProviderDenied('Google callback is missing the authorization code')
        check_oauth_state(request, state)

        profile = await google.exchange_code(code)
        user = directory.resolve_or_create(db, profile.external_id, profile)
        redirect_url = resolve_login_redirect(user)
    except AuthError as exc:
        logger.warning('Google login failed: %s', exc)
        return RedirectResponse(url=login_failure_url(), status_code=302)
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Database error during Google login.')
        return RedirectResponse(url=login_failure_url(), status_code=302)

    return RedirectResponse(url=redirect_url, status_code=302)


@router.get('/UserData')
def user_data(
    token: str | None = Depends(get_bearer_token),
    db: Session = Depends(get_db),
):
    try:
        user = verify_token(token, db)
    except MissingToken:
        return JSONResponse(status_code=401, content={'loggedIn': False})
    except TokenInvalid as exc:
        logger.warning('Rejected bearer token: %s', exc)
        return JSONResponse(status_code=403, content={'loggedIn': False})
    except UserNotFound as exc:
        logger.warning('Bearer token subject is gone: %s', exc)
        return JSONResponse(status_code=404, content={'loggedIn': False})
    except AccountDeactivated as exc:
        logger.warning('Bearer token for a deactivated account: %s', exc)
        return JSONResponse(status_code=403, content={'loggedIn': False})
    except SQLAlchemyError:
        logger.exception('Database error while verifying a session.')
        return JSONResponse(status_code=503, content={'loggedIn': False})

    return {'loggedIn': True, 'user': public_profile(user)}


@router.get('/logout')
def logout(request: Request):
    # Tokens are not revoked server side; only the login session is dropped.
    request.session.clear()
    return RedirectResponse(url=build_frontend_url('/login'), status_code=302)
