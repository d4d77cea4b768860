from collections.abc import Iterator

from fastapi import Depends, Request
from sqlmodel import Session

from src.userstore.api.http.app_data import ApplicationDependencies
from src.userstore.core.services import DbSessionService, UserService


def get_database_service(request: Request) -> DbSessionService:
    """Get the shared connection pool service."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.database_service


def get_db_session(
    database_service: DbSessionService = Depends(get_database_service),
) -> Iterator[Session]:
    """Open a session for the duration of one request."""
    session = database_service.get_session()
    try:
        yield session
    finally:
        session.close()


def get_user_service(db_session: Session = Depends(get_db_session)) -> UserService:
    """Get a user service bound to the request's session."""
    return UserService(db_session)
