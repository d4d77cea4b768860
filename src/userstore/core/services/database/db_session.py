"""Database engine and session factory used across the application."""

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from src.userstore.runtime.config.config_data import ConfigData
from src.userstore.runtime.context import get_config


def _fold_case(value):
    return value.lower() if isinstance(value, str) else value


@event.listens_for(Engine, "connect")
def _register_sqlite_functions(dbapi_connection, connection_record) -> None:
    """Replace SQLite's ASCII-only ``lower()`` so search folds every letter."""
    if isinstance(dbapi_connection, sqlite3.Connection):
        dbapi_connection.create_function("lower", 1, _fold_case, deterministic=True)


class DbSessionService:
    """Process-wide connection pool for the relational store.

    The engine is built once (or injected) and connects lazily on first use;
    ``dispose`` tears the pool down once at shutdown.
    """

    def __init__(self, engine: Engine | None = None, config: ConfigData | None = None):
        """Initialize the shared database engine and session factory."""
        if engine is not None:
            self._engine = engine
            self._disposed = False
            return

        main_config = config or get_config()
        db_config = main_config.database
        backend = db_config.backend

        logger.info("Configuring database engine for environment: {}", main_config.app.environment)
        engine_kwargs: dict = {
            "pool_pre_ping": True,
            "echo": False,
            "connect_args": self._get_connect_args(main_config),
        }

        if backend == "sqlite":
            # An in-memory database only exists on a single shared connection
            if db_config.connection_string in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs.update(
                {
                    "pool_size": db_config.pool_size,
                    "max_overflow": db_config.max_overflow,
                    "pool_timeout": db_config.pool_timeout,
                    "pool_recycle": db_config.pool_recycle,
                }
            )

        self._engine = create_engine(db_config.connection_string, **engine_kwargs)
        self._disposed = False
        logger.info(
            "Database engine initialized",
            backend=backend,
            database=db_config.name,
            pool_size=db_config.pool_size,
            max_overflow=db_config.max_overflow,
            pool_timeout=db_config.pool_timeout,
        )

    @staticmethod
    def _get_connect_args(config: ConfigData) -> dict:
        """Get database-specific connection arguments."""
        connect_args: dict = {}
        backend = config.database.backend

        if backend == "postgresql":
            connect_args.update(
                {
                    "application_name": f"{config.app.name}_{config.app.environment}",
                    "connect_timeout": config.database.pool_timeout,
                }
            )
        elif backend in ("mysql", "mariadb"):
            connect_args["connect_timeout"] = config.database.pool_timeout
        elif backend == "sqlite":
            connect_args.update(
                {
                    "check_same_thread": False,
                    "timeout": 20,
                }
            )
            if config.app.environment == "production":
                logger.warning("SQLite is not recommended for production use")

        return connect_args

    @property
    def engine(self) -> Engine:
        return self._engine

    def get_session(self) -> Session:
        """Return a new SQLModel session bound to the shared engine."""
        return Session(
            self._engine,
            expire_on_commit=False,
            autoflush=True,
        )

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Context manager style helper for repositories and scripts."""
        db = self.get_session()
        try:
            yield db
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(
                "Database transaction failed: {}: {}", type(e).__name__, e
            )
            raise
        finally:
            db.close()

    def create_all(self) -> None:
        """Create the users table and its indexes if they do not exist."""
        from src.userstore.entities.user import UserTable  # noqa: F401

        SQLModel.metadata.create_all(self._engine)
        logger.info("Database initialized with tables.")

    def health_check(self) -> bool:
        """Perform a health check on the database connection."""
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
                return True
        except Exception as e:
            logger.error(
                "Database health check failed: {}: {}", type(e).__name__, e
            )
            return False

    def get_pool_status(self) -> dict:
        """Get current connection pool status for monitoring."""
        pool = self._engine.pool
        return {
            "size": getattr(pool, "size", lambda: 0)(),
            "checked_in": getattr(pool, "checkedin", lambda: 0)(),
            "checked_out": getattr(pool, "checkedout", lambda: 0)(),
            "overflow": getattr(pool, "overflow", lambda: 0)(),
        }

    def dispose(self) -> None:
        """Close every pooled connection; later calls are no-ops."""
        if self._disposed:
            return
        self._engine.dispose()
        self._disposed = True
        logger.info("Database connection pool disposed")
