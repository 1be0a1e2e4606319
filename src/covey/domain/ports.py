# src/covey/domain/ports.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol, TypedDict


# ----------------------------
# Scenario storage
# ----------------------------

StrategyType = str  # long_term_rental | fix_and_flip | short_term_rental


class ScenarioRecord(TypedDict):
    id: str
    property_id: str
    unit_id: str | None
    name: str
    strategy_type: StrategyType
    inputs: dict[str, Any]
    results: dict[str, Any]
    is_primary: bool
    created_at: datetime
    updated_at: datetime


class ScenarioRepository(Protocol):
    """
    Persistence for named {inputs, results} pairs attached to a property.

    Implementations keep at most one primary scenario per property and keep
    the property's denormalized summary in sync with it.
    """

    def create(
        self,
        *,
        property_id: str,
        name: str,
        strategy_type: StrategyType,
        inputs: dict[str, Any],
        results: dict[str, Any],
        is_primary: bool = False,
        unit_id: str | None = None,
    ) -> ScenarioRecord:
        ...

    def get(self, scenario_id: str) -> ScenarioRecord | None:
        ...

    def list_for_property(self, property_id: str) -> list[ScenarioRecord]:
        ...

    def update(self, scenario_id: str, **updates: Any) -> ScenarioRecord | None:
        ...

    def delete(self, scenario_id: str) -> bool:
        ...

    def promote(self, scenario_id: str) -> bool:
        ...

    def property_summary(self, property_id: str) -> dict[str, Any] | None:
        ...
