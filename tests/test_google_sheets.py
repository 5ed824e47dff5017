"""
Tests for the Google Sheets backend, against an in-process fake of the
gspread worksheet surface.
"""

from datetime import date, datetime, timezone

import pytest

from family_hub.models import AuditEventBuilder, AuditEventType, Task, TaskDraft
from family_hub.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsEntityBackend,
    NotFoundError,
    StorageError,
)
from family_hub.services.storage.google_sheets import AUDIT_SHEET_NAME, record_columns


class FakeWorksheet:
    def __init__(self, header):
        self.rows = [list(header)]

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, values, value_input_option=None):
        self.rows.append(list(values))

    def update(self, range_name, values, value_input_option=None):
        idx = int(range_name[1:])
        self.rows[idx - 1] = list(values[0])

    def delete_rows(self, idx):
        del self.rows[idx - 1]


class FakeSheetsClient:
    spreadsheet_id = "sheet-123"

    def __init__(self):
        self.worksheets = {}

    def get_worksheet(self, title, columns):
        if title not in self.worksheets:
            self.worksheets[title] = FakeWorksheet(columns)
        return self.worksheets[title]


@pytest.fixture
def client():
    return FakeSheetsClient()


@pytest.fixture
def sheets(client):
    return GoogleSheetsEntityBackend(client)


def task_body(title="Buy groceries"):
    return TaskDraft(title=title, assignee="Sarah", due_date=date(2024, 3, 15)).to_wire()


class TestRecordColumns:
    """Tests for worksheet headers."""

    def test_ids_and_timestamps_first(self):
        """Test that header rows start with id and timestamps in camelCase."""
        columns = record_columns("tasks")
        assert columns[:3] == ["id", "createdAt", "updatedAt"]
        assert "dueDate" in columns
        assert columns.count("id") == 1

    def test_planning_resources(self):
        """Test that trips and parties have worksheets too."""
        assert "startDate" in record_columns("trips")
        assert "guestCount" in record_columns("parties")

    def test_unknown_resource(self):
        """Test that an unknown resource is a storage error."""
        with pytest.raises(StorageError):
            record_columns("pets")


class TestGoogleSheetsEntityBackend:
    """Tests for GoogleSheetsEntityBackend."""

    @pytest.mark.asyncio
    async def test_create_and_list(self, sheets, client):
        """Test that a created row lists back and validates as a record."""
        created = await sheets.create_record("tasks", task_body())

        rows = await sheets.list_records("tasks")

        assert len(rows) == 1
        assert rows[0]["id"] == created["id"]
        task = Task.model_validate(rows[0])
        assert task.completed is False
        assert task.due_date == date(2024, 3, 15)
        assert len(client.worksheets["tasks"].rows) == 2

    @pytest.mark.asyncio
    async def test_update_merges(self, sheets):
        """Test that an update keeps untouched columns and refreshes updatedAt."""
        created = await sheets.create_record("tasks", task_body())

        updated = await sheets.update_record("tasks", created["id"], {"completed": True})

        assert updated["title"] == "Buy groceries"
        row = (await sheets.list_records("tasks"))[0]
        assert row["completed"] == "true"
        assert row["createdAt"] == created["createdAt"]

    @pytest.mark.asyncio
    async def test_update_missing(self, sheets):
        """Test that updating an unknown id raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await sheets.update_record("tasks", "nope", {"completed": True})

    @pytest.mark.asyncio
    async def test_delete(self, sheets):
        """Test that delete removes the row and reports unknown ids as False."""
        first = await sheets.create_record("tasks", task_body("One"))
        await sheets.create_record("tasks", task_body("Two"))

        assert await sheets.delete_record("tasks", first["id"]) is True
        assert await sheets.delete_record("tasks", first["id"]) is False
        assert [r["title"] for r in await sheets.list_records("tasks")] == ["Two"]

    @pytest.mark.asyncio
    async def test_bootstrap_seeds_once(self, sheets, client):
        """Test that bootstrap creates every sheet and seeds only empty ones."""
        await sheets.bootstrap(seed=True)
        seeded = len(client.worksheets["tasks"].rows)
        await sheets.bootstrap(seed=True)

        assert seeded > 1
        assert len(client.worksheets["tasks"].rows) == seeded
        assert {"events", "subscriptions", "family-members", "transactions", "trips", "parties"} <= set(client.worksheets)
        assert sheets.identity == "sheets://sheet-123"


class TestGoogleSheetsAuditStorage:
    """Tests for the audit worksheet."""

    @pytest.mark.asyncio
    async def test_append_and_read_back(self, client):
        """Test that events round-trip through the worksheet, newest first."""
        storage = GoogleSheetsAuditStorage(client)
        first = AuditEventBuilder.entity_written("create", "tasks", "t1", None).model_copy(
            update={"timestamp": datetime(2024, 3, 15, 9, 0, tzinfo=timezone.utc)}
        )
        second = AuditEventBuilder.write_failed("delete", "tasks", "boom", None, entity_id="t1").model_copy(
            update={"timestamp": datetime(2024, 3, 15, 9, 5, tzinfo=timezone.utc)}
        )

        assert await storage.append_event(first)
        assert await storage.append_event(second)
        events = await storage.get_recent_events(limit=10)

        assert [e.event_type for e in events] == [AuditEventType.WRITE_FAILED, AuditEventType.ENTITY_CREATED]
        assert events[0].error_message == "boom"
        assert len(client.worksheets[AUDIT_SHEET_NAME].rows) == 3
