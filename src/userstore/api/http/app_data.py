from dataclasses import dataclass

from src.userstore.core.services import DbSessionService


@dataclass
class ApplicationDependencies:
    database_service: DbSessionService
