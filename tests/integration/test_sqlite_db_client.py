"""Integration tests for db_client against a real SQLite file."""

import pytest

from src.core import db_client
from src.core.db_client import RecordNotFoundError
from src.core.errors import NotFoundError
from src.domain.task import TaskStatus
from src.modules.tasks import service as task_service
from src.services import audit_log_service, notification_store
from src.services.presence_registry import PresenceRegistry


pytestmark = pytest.mark.integration


async def test_crud_round_trip(sqlite_db):
    record = await db_client.create_record(
        collection="tasks", data={"title": "Write report", "creator_id": "alice", "priority": "High"}
    )

    assert isinstance(record["id"], str)
    assert record["status"] == "Pending"

    updated = await db_client.update_record(collection="tasks", record_id=record["id"], data={"status": "Completed"})
    assert updated["status"] == "Completed"
    assert updated["updated"] >= record["updated"]

    await db_client.delete_record(collection="tasks", record_id=record["id"])
    with pytest.raises(RecordNotFoundError):
        await db_client.get_record(collection="tasks", record_id=record["id"])


async def test_non_numeric_id_is_not_found(sqlite_db):
    with pytest.raises(RecordNotFoundError):
        await db_client.get_record(collection="tasks", record_id="abc")


async def test_unknown_collection_rejected(sqlite_db):
    with pytest.raises(db_client.DatabaseError):
        await db_client.list_records(collection="users; DROP TABLE tasks")


async def test_check_constraint_rejects_bad_status(sqlite_db):
    with pytest.raises(db_client.DatabaseError):
        await db_client.create_record(collection="tasks", data={"title": "x", "creator_id": "a", "status": "Done"})


async def test_notification_flow(sqlite_db):
    first = await notification_store.append(recipient_id="alice", message="one", task_id="1")
    await notification_store.append(recipient_id="alice", message="two", task_id="1")

    listed = await notification_store.list_by_recipient(recipient_id="alice")
    assert [n.message for n in listed] == ["two", "one"]
    assert all(n.is_read is False for n in listed)

    marked = await notification_store.mark_one_read(recipient_id="alice", notification_id=first.id)
    assert marked.is_read is True

    assert await notification_store.mark_all_read(recipient_id="alice") == 1
    assert await notification_store.mark_all_read(recipient_id="alice") == 0
    assert await notification_store.count_unread(recipient_id="alice") == 0


async def test_task_lifecycle(sqlite_db):
    presence = PresenceRegistry()
    task = await task_service.create_task(
        actor_id="alice", data={"title": "Write report", "assignee_id": "bob"}, presence=presence
    )

    updated = await task_service.update_task(
        actor_id="bob", task_id=task.id, data={"status": "In Progress"}, presence=presence
    )
    assert updated.status == TaskStatus.IN_PROGRESS

    found = await task_service.list_my_tasks(actor_id="bob", scope="assigned", query="report")
    assert [t.id for t in found] == [task.id]

    logs = await task_service.get_task_logs(actor_id="alice", task_id=task.id)
    assert [log.details for log in logs] == ["Status changed from Pending to In Progress", 'Task "Write report" was created']

    await task_service.delete_task(actor_id="alice", task_id=task.id, presence=presence)

    assert await audit_log_service.list_for_task(task_id=task.id) == []
    assert len(await notification_store.list_by_recipient(recipient_id="bob")) == 2


@pytest.mark.parametrize("notification_id", ["1.0", "true", "01", " 1", "+1", "1e0"])
async def test_mark_one_read_rejects_aliased_ids(sqlite_db, notification_id):
    created = await notification_store.append(recipient_id="bob", message="hello")
    assert created.id == "1"

    with pytest.raises(NotFoundError):
        await notification_store.mark_one_read(recipient_id="bob", notification_id=notification_id)

    stored = await notification_store.list_by_recipient(recipient_id="bob")
    assert [n.is_read for n in stored] == [False]


async def test_audit_trail_is_read_past_one_page(sqlite_db, monkeypatch):
    monkeypatch.setattr("src.core.config.Constants.DEFAULT_PER_PAGE_LIMIT", 3)
    for i in range(7):
        await audit_log_service.append_entry(task_id="1", action="Task Updated", actor_id="alice", details=f"{i}")

    logs = await audit_log_service.list_for_task(task_id="1")

    assert [log.details for log in logs] == ["6", "5", "4", "3", "2", "1", "0"]
