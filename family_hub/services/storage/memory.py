"""
In-Memory Backend

Behaves like the household API: assigns ids and timestamps on create,
merges partial updates and refreshes updatedAt, deletes by id.
Used for tests and for the offline demo mode.
"""

from copy import deepcopy
from datetime import date, datetime, timezone
from typing import Optional
from uuid import uuid4

from family_hub.services.storage.interface import EntityBackend, NotFoundError
from family_hub.services.storage.seed import example_records


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryEntityBackend(EntityBackend):
    """Dictionary-backed implementation of the remote resource contract."""

    def __init__(self, name: str = "memory", today: Optional[date] = None):
        self._name = name
        self._today = today
        self._tables: dict[str, dict[str, dict]] = {}
        self.bootstrap_calls = 0

    @property
    def identity(self) -> str:
        return f"memory://{self._name}"

    def _table(self, resource: str) -> dict[str, dict]:
        return self._tables.setdefault(resource, {})

    async def list_records(self, resource: str) -> list[dict]:
        # Newest first, like the API's ORDER BY created_at DESC
        rows = list(self._table(resource).values())
        rows.sort(key=lambda r: r["createdAt"], reverse=True)
        return deepcopy(rows)

    async def create_record(self, resource: str, body: dict) -> dict:
        now = _timestamp()
        record = {
            **deepcopy(body),
            "id": f"{resource.rstrip('s').replace('-', '_')}_{uuid4().hex[:12]}",
            "createdAt": now,
            "updatedAt": now,
        }
        self._table(resource)[record["id"]] = record
        return deepcopy(record)

    async def update_record(self, resource: str, record_id: str, body: dict) -> dict:
        table = self._table(resource)
        if record_id not in table:
            raise NotFoundError(f"{resource} record not found: {record_id}", status_code=404)

        changes = {k: v for k, v in body.items() if k not in ("id", "createdAt", "updatedAt")}
        table[record_id].update(deepcopy(changes))
        table[record_id]["updatedAt"] = _timestamp()
        return deepcopy(table[record_id])

    async def delete_record(self, resource: str, record_id: str) -> bool:
        return self._table(resource).pop(record_id, None) is not None

    async def bootstrap(self, seed: bool = False) -> bool:
        self.bootstrap_calls += 1
        if seed and not any(self._tables.values()):
            today = self._today or date.today()
            for resource, bodies in example_records(today).items():
                for body in bodies:
                    await self.create_record(resource, body)
        return True
