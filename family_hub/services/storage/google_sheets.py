"""
Google Sheets Backend

DESIGN DECISION: A spreadsheet can stand in for the household API.
Each resource gets its own worksheet with a header row of camelCase
column names; each record is one row. Ids and timestamps are assigned
here, the same way the API assigns them.

TRADEOFFS:
- Every operation reads the whole worksheet (fine at household scale)
- No transactions (single-row appends and updates only)
- Values are stored as text; the store re-validates them into models

gspread is synchronous, so calls run in a worker thread.
"""

import asyncio
import json
from datetime import date, datetime, timezone
from typing import Optional
from uuid import uuid4

import gspread
from google.oauth2.service_account import Credentials
from pydantic.alias_generators import to_camel
from tenacity import retry, stop_after_attempt, wait_exponential

from family_hub.config import GoogleSheetsSettings, get_settings
from family_hub.models.audit import AuditEvent, AuditEventType, AuditSeverity
from family_hub.models.entities import EntityKind
from family_hub.models.planning import PARTIES_RESOURCE, TRIPS_RESOURCE, Party, Trip
from family_hub.services.storage.interface import (
    AuditStorageInterface,
    BackendUnavailableError,
    EntityBackend,
    NotFoundError,
    StorageError,
)
from family_hub.services.storage.seed import example_records


AUDIT_SHEET_NAME = "AuditLog"

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "resource",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
]

_RESOURCE_MODELS = {kind.resource: kind.record_model for kind in EntityKind}
_RESOURCE_MODELS[TRIPS_RESOURCE] = Trip
_RESOURCE_MODELS[PARTIES_RESOURCE] = Party


def record_columns(resource: str) -> list[str]:
    """Header row for a resource: id and timestamps first, then the model's fields."""
    try:
        model = _RESOURCE_MODELS[resource]
    except KeyError:
        raise StorageError(f"Unknown resource: {resource}")

    leading = ["id", "createdAt", "updatedAt"]
    aliases = [field.alias or to_camel(name) for name, field in model.model_fields.items()]
    return leading + [alias for alias in aliases if alias not in leading]


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet creation.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets
        self._worksheets: dict[str, gspread.Worksheet] = {}

    @property
    def spreadsheet_id(self) -> str:
        return self._settings.spreadsheet_id

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """Establish connection using service account credentials."""
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise BackendUnavailableError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise BackendUnavailableError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self._settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound:
                raise BackendUnavailableError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str]) -> gspread.Worksheet:
        """Get or create a worksheet with the given header row."""
        if title in self._worksheets:
            return self._worksheets[title]

        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        self._worksheets[title] = sheet
        return sheet


class GoogleSheetsEntityBackend(EntityBackend):
    """One worksheet per resource, one row per record."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @property
    def identity(self) -> str:
        return f"sheets://{self._client.spreadsheet_id}"

    def _sheet(self, resource: str) -> tuple[gspread.Worksheet, list[str]]:
        columns = record_columns(resource)
        return self._client.get_worksheet(resource, columns), columns

    def _row_to_record(self, row: list, columns: list[str]) -> dict:
        """Blank cells are dropped so optional fields fall back to their defaults."""
        return {
            column: value
            for column, value in zip(columns, row)
            if value != ""
        }

    def _record_to_row(self, record: dict, columns: list[str]) -> list[str]:
        return [_cell(record.get(column)) for column in columns]

    def _find_row(self, sheet: gspread.Worksheet, record_id: str) -> tuple[int, list]:
        """Return (1-based row index, row values) for a record id."""
        for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
            if row and row[0] == record_id:
                return idx, row
        raise NotFoundError(f"Record not found: {record_id}", status_code=404)

    async def list_records(self, resource: str) -> list[dict]:
        def _list() -> list[dict]:
            sheet, columns = self._sheet(resource)
            rows = sheet.get_all_values()[1:]
            records = [self._row_to_record(row, columns) for row in rows if row and row[0]]
            records.sort(key=lambda r: r.get("createdAt", ""), reverse=True)
            return records

        try:
            return await asyncio.to_thread(_list)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list {resource}: {e}")

    async def create_record(self, resource: str, body: dict) -> dict:
        now = datetime.now(timezone.utc).isoformat()
        record = {
            **body,
            "id": f"{resource.rstrip('s').replace('-', '_')}_{uuid4().hex[:12]}",
            "createdAt": now,
            "updatedAt": now,
        }

        def _append() -> None:
            sheet, columns = self._sheet(resource)
            sheet.append_row(self._record_to_row(record, columns), value_input_option="RAW")

        try:
            await asyncio.to_thread(_append)
            return record
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to create {resource}: {e}")

    async def update_record(self, resource: str, record_id: str, body: dict) -> dict:
        def _update() -> dict:
            sheet, columns = self._sheet(resource)
            idx, row = self._find_row(sheet, record_id)
            record = self._row_to_record(row, columns)
            record.update({k: v for k, v in body.items() if k not in ("id", "createdAt")})
            record["updatedAt"] = datetime.now(timezone.utc).isoformat()
            new_row = self._record_to_row(record, columns)
            sheet.update(
                range_name=f"A{idx}",
                values=[new_row],
                value_input_option="RAW",
            )
            return record

        try:
            return await asyncio.to_thread(_update)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update {resource}: {e}")

    async def delete_record(self, resource: str, record_id: str) -> bool:
        def _delete() -> bool:
            sheet, _ = self._sheet(resource)
            try:
                idx, _row = self._find_row(sheet, record_id)
            except NotFoundError:
                return False
            sheet.delete_rows(idx)
            return True

        try:
            return await asyncio.to_thread(_delete)
        except Exception as e:
            raise StorageError(f"Failed to delete {resource}: {e}")

    async def bootstrap(self, seed: bool = False) -> bool:
        """Create every worksheet; seed example rows if the task sheet is empty."""
        resources = list(_RESOURCE_MODELS)

        def _ensure() -> bool:
            for resource in resources:
                self._sheet(resource)
            sheet, _ = self._sheet(EntityKind.TASK.resource)
            return len(sheet.get_all_values()) <= 1

        try:
            is_empty = await asyncio.to_thread(_ensure)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to prepare worksheets: {e}")

        if seed and is_empty:
            for resource, bodies in example_records(date.today()).items():
                for body in bodies:
                    await self.create_record(resource, body)
        return True


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=safe_get(0),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            resource=safe_get(4) or None,
            entity_id=safe_get(5) or None,
            correlation_id=safe_get(6) or None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
        )

    async def append_event(self, event: AuditEvent) -> bool:
        def _append() -> None:
            sheet = self._client.get_worksheet(AUDIT_SHEET_NAME, AUDIT_COLUMNS)
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")

        try:
            await asyncio.to_thread(_append)
            return True
        except Exception:
            # The audit logger records the failure; it must not break the write path
            return False

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        def _read() -> list[list]:
            sheet = self._client.get_worksheet(AUDIT_SHEET_NAME, AUDIT_COLUMNS)
            return sheet.get_all_values()[1:]

        try:
            rows = await asyncio.to_thread(_read)
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in rows:
            if row and row[0]:
                try:
                    events.append(self._row_to_event(row))
                except ValueError:
                    continue

        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
