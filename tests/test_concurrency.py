import asyncio

from sqlalchemy import text
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from feedback_system.audit import AuditRecorder
from feedback_system.auth_deps import RequestContext
from feedback_system.moderation import ModerationEngine
from feedback_system.schemas import AdminIdentity
from feedback_system.tasks import TaskQueue

from tests.conftest import _sync_engine, _test_db_path


def test_concurrent_transitions_on_one_item(client, submit_feedback):
    feedback_id = submit_feedback()["id"]
    targets = ["approved", "rejected", "pending", "approved", "rejected", "pending"]
    ctx = RequestContext(admin=AdminIdentity(id=1, username="admin", role="admin"))

    async def no_notification(feedback):
        return None

    async def scenario():
        engine = create_async_engine(f"sqlite+aiosqlite:///{_test_db_path}", poolclass=NullPool)
        sessions = async_sessionmaker(engine, expire_on_commit=False)
        audit = AuditRecorder(session_factory=sessions)
        tasks = TaskQueue()

        async def moderate(target):
            # One session per caller, as with separate requests
            async with sessions() as db:
                moderation = ModerationEngine(db, audit, tasks, notifier=no_notification)
                return await moderation.set_status(feedback_id, target, ctx)

        try:
            return await asyncio.gather(*(moderate(target) for target in targets))
        finally:
            await engine.dispose()

    results = asyncio.run(scenario())

    assert [item.status for item in results] == targets
    with _sync_engine.connect() as conn:
        final = conn.execute(
            text("SELECT status FROM feedback WHERE id = :id"), {"id": feedback_id}
        ).scalar_one()
        audited = conn.execute(
            text("SELECT COUNT(*) FROM audit_logs WHERE entity_type = 'feedback' AND entity_id = :id"),
            {"id": feedback_id},
        ).scalar_one()
    assert final in targets
    assert audited == len(targets)
