import logging
from typing import Protocol
from urllib.parse import quote

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm import sessionmaker

from heatmap_badge.db import Base
from heatmap_badge.domain import CachedPage
from heatmap_badge.models import CachedPageRow


logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "https://github-contributions.cache/"


def cache_key_for(username: str) -> str:
    """Return the cache key of a user's contributions page.

    The username is percent-encoded in full, so distinct names never share a
    key.
    """

    return CACHE_KEY_PREFIX + quote(username, safe="")


class PageCache(Protocol):
    """Storage for one revalidatable contributions page per user."""

    def get(self, key: str) -> CachedPage | None: ...

    def put(self, key: str, page: CachedPage) -> None: ...


class MemoryPageCache:
    """Process-local cache holding pages as JSON documents."""

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}

    def get(self, key: str) -> CachedPage | None:
        raw_entry = self._entries.get(key)
        if raw_entry is None:
            return None
        return CachedPage.model_validate_json(raw_entry)

    def put(self, key: str, page: CachedPage) -> None:
        self._entries[key] = page.model_dump_json()

    def __len__(self) -> int:
        return len(self._entries)


class DatabasePageCache:
    """Cache backed by the ``cached_pages`` table.

    Concurrent writers for the same key race without locking; whichever
    commits last is kept.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    @classmethod
    def from_engine(cls, engine: Engine) -> "DatabasePageCache":
        Base.metadata.create_all(bind=engine)
        return cls(sessionmaker(bind=engine, autoflush=False, autocommit=False))

    def get(self, key: str) -> CachedPage | None:
        with self._session_factory() as db:
            row = db.get(CachedPageRow, key)
            if row is None:
                return None
            return CachedPage(
                html=row.html, etag=row.etag, last_modified=row.last_modified
            )

    def put(self, key: str, page: CachedPage) -> None:
        with self._session_factory() as db:
            try:
                self._upsert(db, key, page)
                db.commit()
            except IntegrityError:
                # Another request inserted the same key first.
                db.rollback()
                logger.info("Cache row for %s appeared concurrently, updating", key)
                self._upsert(db, key, page)
                db.commit()

    @staticmethod
    def _upsert(db: Session, key: str, page: CachedPage) -> None:
        row = db.scalar(select(CachedPageRow).where(CachedPageRow.cache_key == key))
        if row is None:
            db.add(
                CachedPageRow(
                    cache_key=key,
                    html=page.html,
                    etag=page.etag,
                    last_modified=page.last_modified,
                )
            )
            db.flush()
            return

        row.html = page.html
        row.etag = page.etag
        row.last_modified = page.last_modified
