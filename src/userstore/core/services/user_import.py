"""Import of legacy flat-file ``data.json`` exports into the users table."""

import json
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from src.userstore.core.errors import ConflictError, ValidationError
from src.userstore.core.services.database.db_session import DbSessionService
from src.userstore.core.services.user_service import UserService


@dataclass
class FailedRecord:
    index: int
    email: str | None
    errors: list[str]


@dataclass
class ImportSummary:
    total: int = 0
    imported: int = 0
    skipped: list[str] = field(default_factory=list)
    failed: list[FailedRecord] = field(default_factory=list)
    backup_path: Path | None = None


def read_legacy_file(path: Path) -> list:
    """Load the JSON array of user objects stored by the flat-file backend."""
    with path.open(encoding="utf-8") as f:
        records = json.load(f)
    if not isinstance(records, list):
        raise ValueError(f"{path} does not contain a JSON array of users")
    return records


def import_users(path: Path, db_service: DbSessionService) -> ImportSummary:
    """Create every record of ``path`` through the normal create path.

    Records whose email already exists are skipped, invalid records are
    collected in ``failed``. The source file is copied to ``<path>.backup``
    once at least one record was imported. Storage failures abort the import.
    """
    records = read_legacy_file(path)
    summary = ImportSummary(total=len(records))

    session = db_service.get_session()
    try:
        service = UserService(session)
        for index, record in enumerate(records):
            email = record.get("email") if isinstance(record, dict) else None
            try:
                user = service.create(record)
            except ConflictError:
                logger.info("Skipping record {}, email {} already exists", index, email)
                summary.skipped.append(str(email))
            except ValidationError as e:
                logger.warning("Skipping invalid record {}: {}", index, e.errors)
                summary.failed.append(FailedRecord(index=index, email=email, errors=e.errors))
            else:
                logger.debug("Imported record {} as {}", index, user.id)
                summary.imported += 1
    finally:
        session.close()

    if summary.imported > 0:
        backup_path = path.with_name(path.name + ".backup")
        shutil.copyfile(path, backup_path)
        summary.backup_path = backup_path
        logger.info("Legacy data backed up to {}", backup_path)

    logger.info(
        "Import finished: {} imported, {} skipped, {} failed",
        summary.imported,
        len(summary.skipped),
        len(summary.failed),
    )
    return summary
