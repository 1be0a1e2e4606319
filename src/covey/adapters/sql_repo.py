# src/covey/adapters/sql_repo.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlmodel import JSON, Column, Field, Session, SQLModel, create_engine, select

from covey.domain.ports import ScenarioRecord
from covey.domain.scenarios import build_property_summary

_UPDATABLE = {"name", "inputs", "results", "strategy_type"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------- Scenarios ----------

class ScenarioRow(SQLModel, table=True):
    __tablename__ = "underwriting_scenarios"

    # row_id keeps insertion order stable when created_at ties
    row_id: int | None = Field(default=None, primary_key=True)
    id: str = Field(default_factory=lambda: uuid.uuid4().hex, index=True, unique=True)

    property_id: str = Field(index=True)
    unit_id: str | None = None
    name: str
    strategy_type: str
    is_primary: bool = Field(default=False, index=True)

    inputs: dict[str, Any] = Field(sa_column=Column(JSON))
    results: dict[str, Any] = Field(sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=_utcnow, index=True)
    updated_at: datetime = Field(default_factory=_utcnow)


class PropertySummaryRow(SQLModel, table=True):
    __tablename__ = "property_summaries"

    property_id: str = Field(primary_key=True)
    summary: dict[str, Any] = Field(sa_column=Column(JSON))
    updated_at: datetime = Field(default_factory=_utcnow)


def _to_record(row: ScenarioRow) -> ScenarioRecord:
    return {
        "id": row.id,
        "property_id": row.property_id,
        "unit_id": row.unit_id,
        "name": row.name,
        "strategy_type": row.strategy_type,
        "inputs": dict(row.inputs or {}),
        "results": dict(row.results or {}),
        "is_primary": bool(row.is_primary),
        "created_at": row.created_at,
        "updated_at": row.updated_at,
    }


class SqlScenarioRepository:
    def __init__(self, uri: str = "sqlite:///covey.db"):
        self.engine = create_engine(uri, echo=False)
        SQLModel.metadata.create_all(self.engine)

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
        with Session(self.engine) as session:
            if is_primary:
                self._clear_primary(session, property_id)

            row = ScenarioRow(
                property_id=property_id,
                unit_id=unit_id,
                name=name,
                strategy_type=strategy_type,
                inputs=inputs,
                results=results,
                is_primary=is_primary,
            )
            session.add(row)
            if is_primary:
                self._sync_summary(session, row)
            session.commit()
            session.refresh(row)
            return _to_record(row)

    def get(self, scenario_id: str) -> ScenarioRecord | None:
        with Session(self.engine) as session:
            row = self._get_row(session, scenario_id)
            return _to_record(row) if row else None

    def list_for_property(self, property_id: str) -> list[ScenarioRecord]:
        with Session(self.engine) as session:
            stmt = (
                select(ScenarioRow)
                .where(ScenarioRow.property_id == property_id)
                .order_by(ScenarioRow.is_primary.desc(), ScenarioRow.row_id.asc())
            )
            return [_to_record(r) for r in session.exec(stmt)]

    def update(self, scenario_id: str, **updates: Any) -> ScenarioRecord | None:
        unknown = set(updates) - _UPDATABLE
        if unknown:
            raise ValueError(f"Cannot update scenario fields: {sorted(unknown)}")

        with Session(self.engine) as session:
            row = self._get_row(session, scenario_id)
            if row is None:
                return None

            for field, value in updates.items():
                setattr(row, field, value)
            row.updated_at = _utcnow()
            session.add(row)

            if row.is_primary and row.inputs and row.results:
                self._sync_summary(session, row)
            session.commit()
            session.refresh(row)
            return _to_record(row)

    def delete(self, scenario_id: str) -> bool:
        with Session(self.engine) as session:
            row = self._get_row(session, scenario_id)
            if row is None:
                return False

            was_primary = bool(row.is_primary)
            property_id = row.property_id
            session.delete(row)
            session.commit()

            if was_primary:
                stmt = (
                    select(ScenarioRow)
                    .where(ScenarioRow.property_id == property_id)
                    .order_by(ScenarioRow.row_id.asc())
                    .limit(1)
                )
                oldest = session.exec(stmt).first()
                if oldest is not None:
                    self._promote_row(session, oldest)
                    session.commit()
            return True

    def promote(self, scenario_id: str) -> bool:
        with Session(self.engine) as session:
            row = self._get_row(session, scenario_id)
            if row is None:
                return False
            self._promote_row(session, row)
            session.commit()
            return True

    def property_summary(self, property_id: str) -> dict[str, Any] | None:
        with Session(self.engine) as session:
            row = session.get(PropertySummaryRow, property_id)
            return dict(row.summary) if row else None

    # ---------- helpers ----------

    @staticmethod
    def _get_row(session: Session, scenario_id: str) -> ScenarioRow | None:
        stmt = select(ScenarioRow).where(ScenarioRow.id == scenario_id)
        return session.exec(stmt).first()

    @staticmethod
    def _clear_primary(session: Session, property_id: str) -> None:
        stmt = select(ScenarioRow).where(
            ScenarioRow.property_id == property_id,
            ScenarioRow.is_primary == True,  # noqa: E712
        )
        for sibling in session.exec(stmt):
            sibling.is_primary = False
            session.add(sibling)

    def _promote_row(self, session: Session, row: ScenarioRow) -> None:
        self._clear_primary(session, row.property_id)
        row.is_primary = True
        row.updated_at = _utcnow()
        session.add(row)
        self._sync_summary(session, row)

    @staticmethod
    def _sync_summary(session: Session, row: ScenarioRow) -> None:
        summary = build_property_summary(row.inputs or {}, row.results or {})
        existing = session.get(PropertySummaryRow, row.property_id)
        if existing is None:
            session.add(PropertySummaryRow(property_id=row.property_id, summary=summary))
        else:
            existing.summary = summary
            existing.updated_at = _utcnow()
            session.add(existing)
