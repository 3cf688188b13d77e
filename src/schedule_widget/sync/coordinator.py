"""Sync coordinator: keeps the in-memory Schedule and the remote document aligned.

The coordinator is the surface a UI talks to. Each mutating call applies the
change to the Schedule and then writes the whole document back, so the remote
copy is never more than one change behind memory. Errors are published on the
notification channel and re-raised to the caller.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional

from .envelope import EnvelopeError, decode_envelope, encode_envelope
from .remote_store import NOT_FOUND, BlobStore, ConflictError, RemoteError
from ..domain import (
    BacklogItem,
    DeleteMode,
    Habit,
    Schedule,
    ScheduleError,
    Task,
    TaskSpec,
)
from ..services.notifications import Notifier


logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT_PATH = "schedule-data.json"
DEFAULT_COMMIT_MESSAGE = "Update schedule"


class SyncKind(Enum):
    LOAD = "load"
    PERSIST = "persist"


@dataclass
class SyncOperation:
    """Record of one load or persist round-trip."""
    kind: SyncKind
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
    version: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.completed_at is not None and self.error is None

    def duration_seconds(self) -> float:
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return 0.0


class SyncCoordinator:
    """Loads the schedule from a blob store and persists it after every change."""

    def __init__(
        self,
        store: BlobStore,
        schedule: Optional[Schedule] = None,
        notifier: Optional[Notifier] = None,
        path: str = DEFAULT_DOCUMENT_PATH,
        commit_message: str = DEFAULT_COMMIT_MESSAGE,
    ):
        """Initialize the coordinator.

        Args:
            store: Remote blob store holding the document
            schedule: Domain model to keep in sync; a new one by default
            notifier: Channel for user-facing messages
            path: Document path inside the store
            commit_message: Message attached to every write
        """
        self.store = store
        self.schedule = schedule or Schedule()
        self.notifier = notifier or Notifier()
        self.path = path
        self.commit_message = commit_message
        self.file_sha: Optional[str] = None
        self.loaded = False
        self.sync_history: List[SyncOperation] = []
        self.max_history_entries = 100
        self._write_lock = asyncio.Lock()
        self.logger = logging.getLogger(__name__)

    # Load / persist

    async def load(self):
        """Replace in-memory state with the remote document.

        A missing document is created empty. On failure the current in-memory
        state is left untouched.

        Raises:
            RemoteError: If the store cannot be read
            EnvelopeError: If the document is not a schedule
        """
        operation = self._start(SyncKind.LOAD)
        try:
            result = await self.store.fetch_blob(self.path)
            envelope = None if result is NOT_FOUND else decode_envelope(result.content)
        except (RemoteError, EnvelopeError) as e:
            self._fail(operation, e, "Failed to load schedule")
            raise

        if envelope is None:
            self.logger.info(f"{self.path} not found, creating an empty schedule")
            self.schedule.clear()
            self.file_sha = None
            self.loaded = True
            self._finish(operation)
            await self.persist()
            return

        self.schedule.replace(envelope.tasks, envelope.habits, envelope.backlog, envelope.unreadable)
        self.file_sha = result.version
        self.loaded = True
        operation.version = result.version
        self._finish(operation)
        self.logger.info(
            f"Loaded {len(envelope.tasks)} tasks, {len(envelope.habits)} habits, "
            f"{len(envelope.backlog)} backlog items from {self.path}"
        )
        if envelope.unreadable:
            kept = sum(len(entries) for entries in envelope.unreadable.values())
            self.logger.warning(f"Kept {kept} unreadable entries from {self.path} unchanged")
        self.notifier.info("Schedule loaded")

    async def reload(self):
        """Discard local state and load the remote document again.

        This is the recovery path after a ``ConflictError``.
        """
        await self.load()

    async def persist(self):
        """Write the whole schedule with the last-known version token.

        Raises:
            ConflictError: If the remote document changed since it was read
            RemoteError: If the write fails for any other reason
        """
        async with self._write_lock:
            operation = self._start(SyncKind.PERSIST)
            content = encode_envelope(self.schedule)
            try:
                new_sha = await self.store.put_blob(self.path, content, self.file_sha, self.commit_message)
            except ConflictError as e:
                self._fail(operation, e, "Schedule changed elsewhere; reload before saving again")
                raise
            except RemoteError as e:
                self._fail(operation, e, "Failed to save schedule")
                raise

            self.file_sha = new_sha
            operation.version = new_sha
            self._finish(operation)
            self.notifier.info("Schedule saved")

    # Tasks

    def tasks_on(self, day: date) -> List[Task]:
        return self.schedule.tasks_on(day)

    async def add_task(self, spec: TaskSpec) -> Task:
        task = self._apply(self.schedule.add_task, spec)
        await self.persist()
        return task

    async def toggle_completion(self, task_id: int, day: date) -> bool:
        return await self._mutate(self.schedule.toggle_completion, task_id, day)

    async def delete_task(self, task_id: int, mode: DeleteMode = DeleteMode.ALL, day: Optional[date] = None) -> bool:
        return await self._mutate(self.schedule.delete_task, task_id, mode, day)

    # Habits

    @property
    def habits(self) -> List[Habit]:
        return list(self.schedule.habits)

    async def add_habit(self, title: str, goal: Optional[str] = None) -> Habit:
        habit = self._apply(self.schedule.add_habit, title, goal)
        await self.persist()
        return habit

    async def toggle_habit_day(self, habit_id: int, day: date) -> bool:
        return await self._mutate(self.schedule.toggle_habit_day, habit_id, day)

    def streak_of(self, habit: Habit, as_of: Optional[date] = None) -> int:
        return self.schedule.streak_of(habit, as_of)

    async def delete_habit(self, habit_id: int) -> bool:
        return await self._mutate(self.schedule.delete_habit, habit_id)

    # Backlog

    @property
    def backlog(self) -> List[BacklogItem]:
        return list(self.schedule.backlog)

    async def add_backlog_item(self, title: str, description: Optional[str] = None) -> BacklogItem:
        item = self._apply(self.schedule.add_backlog_item, title, description)
        await self.persist()
        return item

    async def toggle_backlog_completed(self, item_id: int) -> bool:
        return await self._mutate(self.schedule.toggle_backlog_completed, item_id)

    async def delete_backlog_item(self, item_id: int) -> bool:
        return await self._mutate(self.schedule.delete_backlog_item, item_id)

    # Internals

    def _apply(self, operation, *args):
        """Run a domain mutation, publishing rejected input."""
        try:
            return operation(*args)
        except ScheduleError as e:
            self.notifier.error(str(e), e)
            raise

    async def _mutate(self, operation, *args) -> bool:
        """Run a domain mutation and persist it if anything changed."""
        changed = self._apply(operation, *args)
        if changed:
            await self.persist()
        return changed

    def _start(self, kind: SyncKind) -> SyncOperation:
        operation = SyncOperation(kind=kind)
        self.sync_history.append(operation)
        del self.sync_history[:-self.max_history_entries]
        return operation

    def _finish(self, operation: SyncOperation):
        operation.completed_at = datetime.now(timezone.utc)
        self.logger.debug(f"{operation.kind.value} finished in {operation.duration_seconds():.2f}s")

    def _fail(self, operation: SyncOperation, error: Exception, message: str):
        operation.error = str(error)
        operation.completed_at = datetime.now(timezone.utc)
        self.logger.error(f"{operation.kind.value} of {self.path} failed: {error}")
        self.notifier.error(f"{message}: {error}", error)
