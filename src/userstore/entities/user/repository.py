"""User repository: all reads and writes against the users table."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from loguru import logger
from pydantic import BaseModel
from sqlalchemy import delete, func, insert, or_, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from src.userstore.core.errors import ConflictError, StorageError
from src.userstore.entities.core._base import new_id, utc_now

from .entity import User, UserData
from .table import UserTable


@dataclass(frozen=True)
class UserFilters:
    """Optional listing filters; ``None`` imposes no restriction."""

    city: str | None = None
    gender: str | None = None
    search: str | None = None


@dataclass(frozen=True)
class Page:
    """Pagination window; ``limit=None`` returns the whole filtered set."""

    limit: int | None = None
    offset: int | None = None


class CityCount(BaseModel):
    city: str
    count: int


class GenderCount(BaseModel):
    gender: str
    count: int


class AgeSummary(BaseModel):
    average: float | None = None
    minimum: int | None = None
    maximum: int | None = None


class UserStats(BaseModel):
    """Aggregate statistics over the users table."""

    total_users: int
    storage_size_bytes: int | None = None
    database_name: str | None = None
    city_counts: list[CityCount]
    gender_counts: list[GenderCount]
    age: AgeSummary


class UserRepository:
    """Data-access layer for users.

    Every filter is appended as a bound-parameter predicate on a
    SQLAlchemy statement; no value is ever interpolated into SQL text.
    """

    def __init__(
        self, session: Session, clock: Callable[[], datetime] = utc_now
    ) -> None:
        self._session = session
        self._clock = clock

    # -- point lookups -------------------------------------------------

    def get(self, user_id: str) -> User | None:
        row = self._session.get(UserTable, user_id, populate_existing=True)
        if row is None:
            return None
        return User.model_validate(row, from_attributes=True)

    def get_by_email(self, email: str) -> User | None:
        statement = select(UserTable).where(UserTable.email == email)
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return User.model_validate(row, from_attributes=True)

    # -- writes --------------------------------------------------------

    def create(self, data: UserData) -> User:
        """Insert a new row with a fresh id and server timestamps.

        Raises:
            ConflictError: the storage layer rejected a duplicate email.
            StorageError: the insert did not persist exactly one row.
        """
        now = self._clock()
        user_id = new_id()
        values = self._column_values(data)
        values.update(id=user_id, created_at=now, updated_at=now)

        try:
            result = self._session.execute(insert(UserTable).values(**values))
        except IntegrityError as e:
            self._raise_for_integrity_error(e, data.email)

        if result.rowcount != 1:
            self._session.rollback()
            raise StorageError(
                f"Insert affected {result.rowcount} rows for user {user_id}",
                message="Failed to create user",
            )

        logger.debug("Inserted user {}", user_id)
        created = self.get(user_id)
        if created is None:
            raise StorageError(f"User {user_id} missing after insert")
        return created

    def update(self, user_id: str, data: UserData) -> User | None:
        """Replace every mutable column of ``user_id`` and refresh ``updated_at``.

        Returns ``None`` when no row matched (deleted concurrently).
        """
        values = self._column_values(data)
        values["updated_at"] = self._clock()
        statement = (
            update(UserTable)
            .where(UserTable.id == user_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        try:
            result = self._session.execute(statement)
        except IntegrityError as e:
            self._raise_for_integrity_error(e, data.email, user_id)

        if result.rowcount == 0:
            logger.debug("Update matched no row for user {}", user_id)
            return None
        return self.get(user_id)

    def delete(self, user_id: str) -> bool:
        """Hard-delete ``user_id``; ``True`` only if a row was removed now."""
        statement = (
            delete(UserTable)
            .where(UserTable.id == user_id)
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(statement)
        return result.rowcount == 1

    # -- queries -------------------------------------------------------

    def list(self, filters: UserFilters | None = None, page: Page | None = None) -> list[User]:
        """Filtered listing, most recently created first."""
        statement = self._apply_filters(select(UserTable), filters or UserFilters())
        statement = statement.order_by(UserTable.created_at.desc())

        page = page or Page()
        if page.limit is not None:
            statement = statement.limit(page.limit)
        if page.offset:
            statement = statement.offset(page.offset)

        rows = self._session.exec(statement).all()
        return [User.model_validate(row, from_attributes=True) for row in rows]

    def search(self, term: str) -> list[User]:
        """Case-insensitive substring match against name or email."""
        return self.list(UserFilters(search=term))

    def count(self, filters: UserFilters | None = None) -> int:
        """Number of rows matching the city and gender filters."""
        filters = filters or UserFilters()
        statement = self._apply_filters(
            select(func.count()).select_from(UserTable),
            UserFilters(city=filters.city, gender=filters.gender),
        )
        return self._session.exec(statement).one()

    def stats(self) -> UserStats:
        total = self.count()

        city_count = func.count().label("count")
        city_rows = self._session.exec(
            select(UserTable.city, city_count)
            .group_by(UserTable.city)
            .order_by(city_count.desc(), UserTable.city)
        ).all()

        gender_count = func.count().label("count")
        gender_rows = self._session.exec(
            select(UserTable.gender, gender_count)
            .group_by(UserTable.gender)
            .order_by(gender_count.desc(), UserTable.gender)
        ).all()

        avg_age, min_age, max_age = self._session.exec(
            select(
                func.avg(UserTable.age),
                func.min(UserTable.age),
                func.max(UserTable.age),
            )
        ).one()

        size, database_name = self.storage_footprint()

        return UserStats(
            total_users=total,
            storage_size_bytes=size,
            database_name=database_name,
            city_counts=[CityCount(city=city, count=n) for city, n in city_rows],
            gender_counts=[GenderCount(gender=gender, count=n) for gender, n in gender_rows],
            age=AgeSummary(
                average=float(avg_age) if avg_age is not None else None,
                minimum=min_age,
                maximum=max_age,
            ),
        )

    def storage_footprint(self) -> tuple[int | None, str | None]:
        """Backend-reported size of the users table in bytes, best-effort.

        Returns ``(None, name)`` when the backend cannot report a size.
        """
        bind = self._session.get_bind()
        dialect = bind.dialect.name
        database_name = bind.url.database

        if dialect == "postgresql":
            query = text("SELECT pg_total_relation_size(:table)")
            params: dict[str, Any] = {"table": UserTable.__tablename__}
        elif dialect in ("mysql", "mariadb"):
            query = text(
                "SELECT SUM(data_length + index_length) FROM information_schema.tables "
                "WHERE table_schema = DATABASE() AND table_name = :table"
            )
            params = {"table": UserTable.__tablename__}
        elif dialect == "sqlite":
            query = text(
                "SELECT page_count * page_size FROM pragma_page_count(), pragma_page_size()"
            )
            params = {}
        else:
            return None, database_name

        try:
            size = self._session.execute(query, params).scalar()
        except SQLAlchemyError as e:
            logger.warning("Could not read storage size from {}: {}", dialect, e)
            self._session.rollback()
            return None, database_name

        return (int(size) if size is not None else None), database_name

    # -- helpers -------------------------------------------------------

    @staticmethod
    def _apply_filters(statement, filters: UserFilters):
        if filters.city:
            statement = statement.where(UserTable.city == filters.city)
        if filters.gender:
            statement = statement.where(UserTable.gender == filters.gender)
        if filters.search:
            term = filters.search.lower()
            statement = statement.where(
                or_(
                    func.lower(UserTable.name).contains(term, autoescape=True),
                    func.lower(UserTable.email).contains(term, autoescape=True),
                )
            )
        return statement

    @staticmethod
    def _column_values(data: UserData) -> dict[str, Any]:
        return {
            "name": data.name,
            "email": data.email,
            "phone": data.phone,
            "city": data.city,
            "gender": data.gender.value,
            "age": data.age,
        }

    def _raise_for_integrity_error(
        self, error: IntegrityError, email: str, user_id: str | None = None
    ) -> None:
        """Classify a constraint violation raised by a write statement."""
        self._session.rollback()
        holder = self.get_by_email(email)
        if holder is not None and holder.id != user_id:
            logger.warning("Storage rejected duplicate email {}", email)
            raise ConflictError(email) from error
        raise StorageError(str(error.orig), message="Failed to write user") from error
