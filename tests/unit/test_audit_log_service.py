"""Tests for the audit log service."""

import pytest

from src.services import audit_log_service


@pytest.mark.unit
class TestAuditLogService:
    """Append, list and cascade delete."""

    async def test_append_and_list_newest_first(self, patched_db):
        await audit_log_service.append_entry(task_id="1", action="Task Created", actor_id="alice", details="a")
        await audit_log_service.append_entry(task_id="1", action="Task Updated", actor_id="bob", details="b")
        await audit_log_service.append_entry(task_id="2", action="Task Created", actor_id="alice")

        logs = await audit_log_service.list_for_task(task_id="1")

        assert [(log.action, log.actor_id) for log in logs] == [("Task Updated", "bob"), ("Task Created", "alice")]

    async def test_details_are_truncated(self, patched_db):
        entry = await audit_log_service.append_entry(
            task_id="1", action="Task Updated", actor_id="alice", details="d" * 600
        )

        assert len(entry.details) == 500

    async def test_delete_for_task(self, patched_db):
        await audit_log_service.append_entry(task_id="1", action="Task Created", actor_id="alice")
        await audit_log_service.append_entry(task_id="2", action="Task Created", actor_id="alice")

        assert await audit_log_service.delete_for_task(task_id="1") == 1
        assert await audit_log_service.list_for_task(task_id="1") == []
        assert len(await audit_log_service.list_for_task(task_id="2")) == 1

    async def test_delete_for_task_without_entries(self, patched_db):
        assert await audit_log_service.delete_for_task(task_id="99") == 0

    async def test_list_reads_past_one_page(self, patched_db, monkeypatch):
        monkeypatch.setattr("src.core.config.Constants.DEFAULT_PER_PAGE_LIMIT", 2)
        for i in range(5):
            await audit_log_service.append_entry(task_id="1", action="Task Updated", actor_id="alice", details=f"{i}")

        logs = await audit_log_service.list_for_task(task_id="1")

        assert [log.details for log in logs] == ["4", "3", "2", "1", "0"]
