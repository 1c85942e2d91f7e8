"""Entity store — one interface, in-memory and SQL backends."""

from agriscience.config import Settings
from agriscience.storage.base import Storage


def build_storage(settings: Settings) -> Storage:
    """Pick the backend named by AGRISCIENCE_STORAGE_BACKEND."""
    if settings.storage_backend == "sql":
        from agriscience.storage.sql import SqlStorage

        return SqlStorage(
            settings.database_url,
            echo=settings.debug,
            seed_catalog=settings.seed_catalog,
        )

    from agriscience.storage.memory import MemoryStorage

    return MemoryStorage(seed_catalog=settings.seed_catalog)
