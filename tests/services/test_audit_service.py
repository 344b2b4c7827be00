"""
Tests for the audit trail and its background dispatcher.

The dispatcher writes through its own sessions on another thread,
so every test commits its own session before events are persisted.
"""

import threading

from sqlalchemy import select

from identity_admin.models.audit_log import AuditLog
from identity_admin.services.audit_service import (
    AuditActor,
    AuditDispatcher,
    AuditEvent,
    AuditLogService,
    AuditTrail,
    SYSTEM_ACTOR,
)


def stored_actions(db):
    db.rollback()
    return [log.action for log in db.execute(
        select(AuditLog).order_by(AuditLog.id)
    ).scalars()]


def event(action):
    return AuditEvent(SYSTEM_ACTOR, action, "USER", None, None)


class TestAuditTrail:

    def test_record_builds_event_with_actor(self, audit_trail, recorder):
        actor = AuditActor(7, "alice", "192.168.1.10")

        audit_trail.record("USER_UPDATED", "USER", 42, {"changed": ["email"]}, actor=actor)

        recorded = recorder.events[0]
        assert recorded.actor == actor
        assert recorded.resource_id == "42"
        assert recorded.metadata == {"changed": ["email"]}

    def test_default_actor_is_system(self, audit_trail, recorder):
        audit_trail.record("LOGIN_FAILED", "AUTH")

        assert recorder.events[0].actor.username == "SYSTEM"
        assert recorder.events[0].actor.ip_address == "UNKNOWN"

    def test_record_never_raises(self):
        class BrokenDispatcher:
            def submit(self, event):
                raise RuntimeError("queue unavailable")

        AuditTrail(BrokenDispatcher()).record("USER_CREATED", "USER", 1)


class TestAuditDispatcher:

    def test_events_are_persisted(self, db_session, session_factory):
        db_session.commit()
        dispatcher = AuditDispatcher(session_factory)
        trail = AuditTrail(dispatcher)

        trail.record("USER_CREATED", "USER", 1, {"username": "alice"},
                     actor=AuditActor(3, "admin", "10.0.0.5"))
        dispatcher.join()
        dispatcher.stop()

        log = db_session.execute(select(AuditLog)).scalar_one()
        assert log.action == "USER_CREATED"
        assert log.username == "admin"
        assert log.ip_address == "10.0.0.5"
        assert log.details == {"username": "alice"}

    def test_failed_write_is_dropped_and_next_succeeds(self, db_session, session_factory):
        db_session.commit()
        calls = []

        def flaky_factory():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("database down")
            return session_factory()

        dispatcher = AuditDispatcher(flaky_factory)
        dispatcher.submit(event("FIRST"))
        dispatcher.submit(event("SECOND"))
        dispatcher.join()

        assert dispatcher.is_running
        dispatcher.stop()
        assert stored_actions(db_session) == ["SECOND"]

    def test_full_queue_drops_oldest(self, db_session, session_factory):
        db_session.commit()
        entered = threading.Event()
        release = threading.Event()

        def blocking_factory():
            entered.set()
            release.wait(5)
            return session_factory()

        dispatcher = AuditDispatcher(blocking_factory, max_queue_size=2)
        dispatcher.submit(event("E1"))
        assert entered.wait(5)

        # The consumer is busy with E1; the queue holds two more
        dispatcher.submit(event("E2"))
        dispatcher.submit(event("E3"))
        dispatcher.submit(event("E4"))
        assert dispatcher.dropped_count == 1

        release.set()
        dispatcher.join()
        dispatcher.stop()

        assert stored_actions(db_session) == ["E1", "E3", "E4"]

    def test_stop_without_start_is_noop(self, session_factory):
        dispatcher = AuditDispatcher(session_factory)
        dispatcher.stop()
        assert not dispatcher.is_running


class TestAuditLogService:

    def test_newest_first_with_total(self, db_session):
        for action in ("A", "B", "C"):
            db_session.add(event(action).to_model())
            db_session.flush()
        db_session.commit()

        logs, total = AuditLogService(db_session).list_logs(page=0, size=2)

        assert total == 3
        assert [log.action for log in logs] == ["C", "B"]
