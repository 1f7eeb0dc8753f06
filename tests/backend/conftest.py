import os

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('JWT_SECRET_KEY', 'test-signing-secret-that-is-long-enough-for-hs256')
os.environ.setdefault('FRONTEND_URL', 'http://frontend.test')

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from backend.database import Base  # noqa: E402
from backend.models import collaborator, expense, funder, grant, project, review  # noqa: E402,F401
from backend.models.user import User  # noqa: E402


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(google_id: str = 'google-1', role: str | None = None, **fields) -> User:
        fields.setdefault('fname', 'Ada')
        fields.setdefault('lname', 'Lovelace')
        fields.setdefault('email', f'{google_id}@example.edu')
        user = User(google_id=google_id, role=role, **fields)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user
