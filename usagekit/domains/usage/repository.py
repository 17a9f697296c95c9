"""Usage event repository wrapping crud.usage_event.

The repository is the ledger's storage adapter. Appends go through
``transaction(stream)``, a scoped unit in which the latest row is re-read and
the new row inserted; the store rejects a second row claiming the same
stream sequence number, which is how concurrent writers are detected.
"""

from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, List, Optional, Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from usagekit import crud
from usagekit.db.session import get_db_context
from usagekit.domains.usage.exceptions import UsageConflictError
from usagekit.schemas.usage_event import StreamKey, UsageEvent, UsageEventCreate


class UsageStreamTransaction(Protocol):
    """Read-modify-write scope over one stream."""

    async def latest(self) -> Optional[UsageEvent]:
        """Latest row of the stream as seen inside this transaction."""
        ...

    async def insert(self, obj_in: UsageEventCreate) -> UsageEvent:
        """Insert the next row. Raises UsageConflictError if its sequence is taken."""
        ...


class UsageEventRepositoryProtocol(Protocol):
    """Data access for the usage ledger."""

    async def find_latest(
        self, stream: StreamKey, event: Optional[str] = None
    ) -> Optional[UsageEvent]:
        """Most recent row of a stream, optionally only rows with tag *event*."""
        ...

    async def list_stream(self, stream: StreamKey, limit: Optional[int] = None) -> List[UsageEvent]:
        """Rows of a stream, oldest first."""
        ...

    def transaction(self, stream: StreamKey) -> AsyncContextManager[UsageStreamTransaction]:
        """Open a read-modify-write scope; commits on clean exit, rolls back otherwise."""
        ...


class _SqlStreamTransaction(UsageStreamTransaction):
    def __init__(self, db: AsyncSession, stream: StreamKey) -> None:
        self._db = db
        self._stream = stream

    async def latest(self) -> Optional[UsageEvent]:
        db_obj = await crud.usage_event.get_latest(
            self._db,
            reference_id=self._stream.reference_id,
            feature_key=self._stream.feature_key,
        )
        return UsageEvent.model_validate(db_obj) if db_obj else None

    async def insert(self, obj_in: UsageEventCreate) -> UsageEvent:
        try:
            db_obj = await crud.usage_event.create(self._db, obj_in=obj_in)
        except IntegrityError as e:
            raise UsageConflictError(str(self._stream)) from e
        return UsageEvent.model_validate(db_obj)


class UsageEventRepository(UsageEventRepositoryProtocol):
    """SQLAlchemy-backed ledger storage, one session per call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize with the session factory built at startup."""
        self._session_factory = session_factory

    async def find_latest(
        self, stream: StreamKey, event: Optional[str] = None
    ) -> Optional[UsageEvent]:
        """Most recent row of a stream."""
        async with get_db_context(self._session_factory) as db:
            db_obj = await crud.usage_event.get_latest(
                db,
                reference_id=stream.reference_id,
                feature_key=stream.feature_key,
                event=event,
            )
            return UsageEvent.model_validate(db_obj) if db_obj else None

    async def list_stream(self, stream: StreamKey, limit: Optional[int] = None) -> List[UsageEvent]:
        """Rows of a stream, oldest first."""
        async with get_db_context(self._session_factory) as db:
            rows = await crud.usage_event.get_stream(
                db,
                reference_id=stream.reference_id,
                feature_key=stream.feature_key,
                limit=limit,
            )
            return [UsageEvent.model_validate(row) for row in rows]

    @asynccontextmanager
    async def transaction(self, stream: StreamKey) -> AsyncIterator[UsageStreamTransaction]:
        """Scoped transaction; a unique-sequence violation at commit is a conflict too."""
        async with get_db_context(self._session_factory) as db:
            try:
                async with db.begin():
                    yield _SqlStreamTransaction(db, stream)
            except IntegrityError as e:
                raise UsageConflictError(str(stream)) from e
