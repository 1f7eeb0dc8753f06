from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from backend.core import config


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {}


engine = create_engine(config.DATABASE_URL, **_engine_kwargs(config.DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_user_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_user_schema(bind=None) -> None:
    """Bring an existing ``users`` table up to date.

    Adds onboarding columns introduced after the table was first created and
    makes sure ``google_id`` carries a unique index, since first-login races
    rely on the database rejecting the duplicate insert.
    """
    global _user_schema_checked

    if _user_schema_checked:
        return

    bind = bind or engine

    with _schema_lock:
        if _user_schema_checked:
            return

        inspector = inspect(bind)

        if 'users' not in inspector.get_table_names():
            _user_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('users')}
        migration_steps = [
            ('email', 'ALTER TABLE users ADD COLUMN email VARCHAR'),
            ('institution', 'ALTER TABLE users ADD COLUMN institution VARCHAR'),
            ('avatar', 'ALTER TABLE users ADD COLUMN avatar VARCHAR'),
            ('research_experience', 'ALTER TABLE users ADD COLUMN research_experience VARCHAR'),
        ]

        with bind.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE UNIQUE INDEX IF NOT EXISTS uq_users_google_id ON users(google_id)')
            )

        _user_schema_checked = True
