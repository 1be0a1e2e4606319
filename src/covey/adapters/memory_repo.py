import itertools
import uuid
from datetime import datetime, timezone
from typing import Any

from covey.domain.ports import ScenarioRecord, ScenarioRepository
from covey.domain.scenarios import build_property_summary

_UPDATABLE = {"name", "inputs", "results", "strategy_type"}


class InMemoryScenarioRepository(ScenarioRepository):
    def __init__(self) -> None:
        self._items: dict[str, ScenarioRecord] = {}
        self._order: dict[str, int] = {}
        self._seq = itertools.count()
        self._summaries: dict[str, dict[str, Any]] = {}

    def create(
        self,
        *,
        property_id: str,
        name: str,
        strategy_type: str,
        inputs: dict[str, Any],
        results: dict[str, Any],
        is_primary: bool = False,
        unit_id: str | None = None,
    ) -> ScenarioRecord:
        if is_primary:
            self._clear_primary(property_id)

        now = datetime.now(timezone.utc)
        rec: ScenarioRecord = {
            "id": uuid.uuid4().hex,
            "property_id": property_id,
            "unit_id": unit_id,
            "name": name,
            "strategy_type": strategy_type,
            "inputs": dict(inputs),
            "results": dict(results),
            "is_primary": is_primary,
            "created_at": now,
            "updated_at": now,
        }
        self._items[rec["id"]] = rec
        self._order[rec["id"]] = next(self._seq)

        if is_primary:
            self._sync_summary(rec)
        return dict(rec)  # type: ignore[return-value]

    def get(self, scenario_id: str) -> ScenarioRecord | None:
        rec = self._items.get(scenario_id)
        return dict(rec) if rec else None  # type: ignore[return-value]

    def list_for_property(self, property_id: str) -> list[ScenarioRecord]:
        rows = [r for r in self._items.values() if r["property_id"] == property_id]
        rows.sort(key=lambda r: (not r["is_primary"], self._order[r["id"]]))
        return [dict(r) for r in rows]  # type: ignore[misc]

    def update(self, scenario_id: str, **updates: Any) -> ScenarioRecord | None:
        rec = self._items.get(scenario_id)
        if rec is None:
            return None

        unknown = set(updates) - _UPDATABLE
        if unknown:
            raise ValueError(f"Cannot update scenario fields: {sorted(unknown)}")

        rec.update(updates)  # type: ignore[typeddict-item]
        rec["updated_at"] = datetime.now(timezone.utc)

        if rec["is_primary"] and rec["inputs"] and rec["results"]:
            self._sync_summary(rec)
        return dict(rec)  # type: ignore[return-value]

    def delete(self, scenario_id: str) -> bool:
        rec = self._items.pop(scenario_id, None)
        if rec is None:
            return False
        self._order.pop(scenario_id, None)

        # promote the oldest remaining scenario
        if rec["is_primary"]:
            remaining = [r for r in self._items.values() if r["property_id"] == rec["property_id"]]
            if remaining:
                oldest = min(remaining, key=lambda r: self._order[r["id"]])
                self.promote(oldest["id"])
        return True

    def promote(self, scenario_id: str) -> bool:
        rec = self._items.get(scenario_id)
        if rec is None:
            return False

        self._clear_primary(rec["property_id"])
        rec["is_primary"] = True
        rec["updated_at"] = datetime.now(timezone.utc)
        self._sync_summary(rec)
        return True

    def property_summary(self, property_id: str) -> dict[str, Any] | None:
        summary = self._summaries.get(property_id)
        return dict(summary) if summary else None

    def _clear_primary(self, property_id: str) -> None:
        for r in self._items.values():
            if r["property_id"] == property_id:
                r["is_primary"] = False

    def _sync_summary(self, rec: ScenarioRecord) -> None:
        self._summaries[rec["property_id"]] = build_property_summary(rec["inputs"], rec["results"])
