import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.sessions import SessionMiddleware

from backend.core import config
from backend.database import Base, engine, ensure_user_schema
from backend.models import collaborator, expense, funder, grant, project, review, user  # noqa: F401
from backend.routes import (
    auth_routes,
    collaborator_routes,
    expense_routes,
    funder_routes,
    grant_routes,
    project_routes,
    review_routes,
    user_routes,
)

app = FastAPI(title='Research Bridge API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)
app.add_middleware(
    SessionMiddleware,
    secret_key=config.SESSION_SECRET_KEY,
    https_only=config.SESSION_HTTPS_ONLY,
    same_site='lax',
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_user_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Research Bridge API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(user_routes.router, prefix='/api/users')
app.include_router(project_routes.router, prefix='/api/projects')
app.include_router(grant_routes.router, prefix='/api/grants')
app.include_router(expense_routes.router, prefix='/api/expenses')
app.include_router(funder_routes.router, prefix='/api/funders')
app.include_router(collaborator_routes.router, prefix='/api/collaborators')
app.include_router(review_routes.router, prefix='/api/reviews')
