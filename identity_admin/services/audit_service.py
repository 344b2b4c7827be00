"""
Audit trail: records security-relevant actions off the request path.

Recording is fire-and-forget. AuditTrail.record() builds an event
and hands it to the AuditDispatcher, which returns immediately.
A single consumer thread drains a bounded queue and writes each
event in its own database session.

Rules:
1. Recording never raises into, and never blocks, the caller
2. A failed write is logged and dropped, never retried
3. When the queue is full the oldest pending event is discarded
   and counted, so a burst cannot stall request handling
4. Entries are not ordered relative to responses or to each other

Who acted and from where is passed in explicitly as an AuditActor.
When nobody is authenticated the SYSTEM actor is used.
"""

import logging
import queue
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from identity_admin.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditActor:
    """Who performed an action, and from which address."""
    user_id: int | None
    username: str
    ip_address: str = "UNKNOWN"


SYSTEM_ACTOR = AuditActor(user_id=None, username="SYSTEM")


@dataclass(frozen=True)
class AuditEvent:
    actor: AuditActor
    action: str
    resource: str
    resource_id: str | None
    metadata: dict[str, Any] | None
    occurred_at: datetime = field(default_factory=datetime.utcnow)

    def to_model(self) -> AuditLog:
        return AuditLog(
            user_id=self.actor.user_id,
            username=self.actor.username,
            action=self.action,
            resource=self.resource,
            resource_id=self.resource_id,
            details=self.metadata,
            ip_address=self.actor.ip_address,
            created_at=self.occurred_at,
        )


# Marks the end of the queue for the consumer thread
_STOP = object()


class AuditDispatcher:
    """
    Bounded work queue with one dedicated consumer thread.

    The session factory is called once per event, on the consumer
    thread, so no session is ever shared with a request.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        max_queue_size: int = 1000,
    ):
        self._session_factory = session_factory
        self._queue: queue.Queue = queue.Queue(maxsize=max_queue_size)
        self._lock = threading.Lock()
        self._dropped_lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self.dropped_count = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.is_running:
                return
            self._thread = threading.Thread(
                target=self._run, name="audit-dispatcher", daemon=True
            )
            self._thread.start()
            logger.info("Audit dispatcher started")

    def stop(self, timeout: float | None = 5.0) -> None:
        """Persist what is already queued, then stop the consumer."""
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            self._enqueue(_STOP)
            self._thread = None
        thread.join(timeout)
        logger.info("Audit dispatcher stopped")

    def join(self) -> None:
        """Block until every queued event has been handled."""
        self._queue.join()

    def submit(self, event: AuditEvent) -> None:
        """Queue an event for persistence. Never blocks."""
        if not self.is_running:
            self.start()
        self._enqueue(event)

    def _enqueue(self, item) -> None:
        while True:
            try:
                self._queue.put_nowait(item)
                return
            except queue.Full:
                self._discard_oldest()

    def _discard_oldest(self) -> None:
        try:
            dropped = self._queue.get_nowait()
        except queue.Empty:
            return
        self._queue.task_done()
        with self._dropped_lock:
            self.dropped_count += 1
            count = self.dropped_count
        logger.warning(
            "Audit queue full, dropped oldest event %s (%d dropped so far)",
            getattr(dropped, "action", dropped), count,
        )

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._persist(item)
            finally:
                self._queue.task_done()

    def _persist(self, event: AuditEvent) -> None:
        try:
            db = self._session_factory()
        except Exception:
            logger.exception("Failed to open session for audit event %s", event.action)
            return
        try:
            db.add(event.to_model())
            db.commit()
            logger.debug("Audit event stored: %s", event.action)
        except Exception:
            db.rollback()
            logger.exception("Failed to save audit log for %s", event.action)
        finally:
            db.close()


class AuditTrail:
    """Front door for recording audit events."""

    def __init__(self, dispatcher: AuditDispatcher):
        self.dispatcher = dispatcher

    def record(
        self,
        action: str,
        resource: str,
        resource_id: Any = None,
        metadata: dict[str, Any] | None = None,
        *,
        actor: AuditActor = SYSTEM_ACTOR,
    ) -> None:
        try:
            event = AuditEvent(
                actor=actor,
                action=action,
                resource=resource,
                resource_id=None if resource_id is None else str(resource_id),
                metadata=metadata,
            )
            self.dispatcher.submit(event)
        except Exception:
            logger.exception("Failed to dispatch audit event %s", action)


class AuditLogService:
    """Read-only access to stored audit entries."""

    def __init__(self, db: Session):
        self.db = db

    def list_logs(self, page: int = 0, size: int = 20) -> tuple[list[AuditLog], int]:
        """Return one page of entries, newest first, plus the total count."""
        total = self.db.execute(
            select(func.count(AuditLog.id))
        ).scalar_one()
        logs = self.db.execute(
            select(AuditLog)
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .offset(page * size)
            .limit(size)
        ).scalars().all()
        return list(logs), total
