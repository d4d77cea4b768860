from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from src.userstore.core.errors import ConflictError, NotFoundError, StorageError
from src.userstore.core.validation import normalize_user
from src.userstore.entities.core._base import utc_now
from src.userstore.entities.user import (
    Page,
    User,
    UserFilters,
    UserRepository,
    UserStats,
)


class UserService:
    """Validation, existence and conflict checks around the user repository.

    Every check that can reject a request runs before the mutating statement,
    so a rejected request never writes. The storage layer's unique constraint
    stays the final authority for email uniqueness under concurrent writes.
    """

    def __init__(
        self, db_session: Session, clock: Callable[[], datetime] = utc_now
    ) -> None:
        self._db_session = db_session
        self._user_repo = UserRepository(db_session, clock=clock)

    def create(self, payload: Mapping[str, Any]) -> User:
        """Validate ``payload`` and insert it as a new user.

        Raises:
            ValidationError: the payload breaks one or more field rules.
            ConflictError: another user already has the normalized email.
        """
        data = normalize_user(payload)

        if self._user_repo.get_by_email(data.email) is not None:
            logger.warning("Create rejected, email {} already exists", data.email)
            raise ConflictError(data.email)

        with self._storage_errors("create"):
            created = self._user_repo.create(data)
            self._db_session.commit()

        logger.info("Created user {}", created.id)
        return created

    def get(self, user_id: str) -> User:
        user = self._user_repo.get(user_id)
        if user is None:
            raise NotFoundError(user_id)
        return user

    def list(
        self,
        filters: UserFilters | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> tuple[list[User], int]:
        """Return one page of matching users and the city/gender total."""
        filters = filters or UserFilters()
        users = self._user_repo.list(filters, Page(limit=limit, offset=offset))
        total = self._user_repo.count(filters)
        return users, total

    def search(self, term: str) -> list[User]:
        return self._user_repo.search(term)

    def by_city(self, city: str) -> list[User]:
        return self._user_repo.list(UserFilters(city=city))

    def by_gender(self, gender: str) -> list[User]:
        return self._user_repo.list(UserFilters(gender=gender))

    def update(self, user_id: str, payload: Mapping[str, Any]) -> User:
        """Replace the mutable fields of ``user_id``.

        The existence check runs first, then validation, then the email
        conflict check against any *other* user.

        Raises:
            NotFoundError: no user with ``user_id`` (before or during the write).
            ValidationError: the payload breaks one or more field rules.
            ConflictError: the new email belongs to a different user.
        """
        existing = self._user_repo.get(user_id)
        if existing is None:
            raise NotFoundError(user_id)

        data = normalize_user(payload)

        if data.email != existing.email:
            holder = self._user_repo.get_by_email(data.email)
            if holder is not None and holder.id != user_id:
                logger.warning(
                    "Update of {} rejected, email {} belongs to {}",
                    user_id,
                    data.email,
                    holder.id,
                )
                raise ConflictError(data.email)

        with self._storage_errors("update"):
            updated = self._user_repo.update(user_id, data)
            if updated is None:
                self._db_session.rollback()
                raise NotFoundError(user_id)
            self._db_session.commit()

        logger.info("Updated user {}", user_id)
        return updated

    def delete(self, user_id: str) -> None:
        """Hard-delete ``user_id``.

        Raises:
            NotFoundError: the user does not exist or was already removed.
        """
        if self._user_repo.get(user_id) is None:
            raise NotFoundError(user_id)

        with self._storage_errors("delete"):
            deleted = self._user_repo.delete(user_id)
            if not deleted:
                self._db_session.rollback()
                raise NotFoundError(user_id)
            self._db_session.commit()

        logger.info("Deleted user {}", user_id)

    def stats(self) -> UserStats:
        return self._user_repo.stats()

    @contextmanager
    def _storage_errors(self, operation: str) -> Iterator[None]:
        """Roll back and re-raise unclassified SQLAlchemy failures as StorageError."""
        try:
            yield
        except SQLAlchemyError as e:
            self._db_session.rollback()
            logger.opt(exception=e).error("User {} failed in storage", operation)
            raise StorageError(str(e), message=f"Failed to {operation} user") from e
