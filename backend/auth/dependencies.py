from datetime import datetime

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from backend.auth import jwt_handler
from backend.auth.errors import AccountDeactivated, MissingToken, TokenInvalid, UserNotFound
from backend.database import get_db
from backend.models.user import User

security = HTTPBearer(auto_error=False)


def verify_token(token: str | None, db: Session, now: datetime | None = None) -> User:
    if not token:
        raise MissingToken("No bearer token supplied")

    try:
        payload = jwt_handler.decode_access_token(token, now=now)
    except jwt.PyJWTError as exc:
        raise TokenInvalid(str(exc)) from exc

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError) as exc:
        raise TokenInvalid("Invalid token subject") from exc

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise UserNotFound(f"User {user_id} not found")
    if not user.status:
        raise AccountDeactivated(f"User {user_id} is deactivated")
    return user


def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str | None:
    if credentials is None:
        return None
    return credentials.credentials


def get_current_user(
    token: str | None = Depends(get_bearer_token),
    db: Session = Depends(get_db),
) -> User:
    try:
        return verify_token(token, db)
    except MissingToken as exc:
        raise HTTPException(status_code=401, detail="Not authenticated") from exc
    except TokenInvalid as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc
    except UserNotFound as exc:
        raise HTTPException(status_code=401, detail="User not found") from exc
    except AccountDeactivated as exc:
        raise HTTPException(status_code=403, detail="Account deactivated") from exc
