# src/covey/api/http.py
from __future__ import annotations

import math
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException

from covey.adapters.config import config
from covey.adapters.logging_utils import get_logger
from covey.adapters.memory_repo import InMemoryScenarioRepository
from covey.adapters.sql_repo import SqlScenarioRepository
from covey.analysis.underwriting import run_underwriting
from covey.domain.debt_fund import DebtQualification
from covey.domain.inputs import default_inputs
from covey.domain.ports import ScenarioRecord, ScenarioRepository
from covey.domain.scenarios import to_display_type
from covey.services.scenarios import (
    compare_with_covey_debt,
    create_covey_debt_scenario,
    create_scenario,
)
from covey.services.validation import normalize_inputs
from .schemas import (
    CoveyScenarioCreate,
    CoveyScenarioResponse,
    DebtFundResponse,
    QualificationOut,
    ScenarioCreate,
    ScenarioItem,
    UnderwriteRequest,
    UnderwriteResponse,
)

logger = get_logger(__name__)

app = FastAPI(title="Covey Underwriting")


def _build_scenario_repo() -> ScenarioRepository:
    if config.SCENARIO_STORE == "sql":
        return SqlScenarioRepository(config.DB_URI)
    return InMemoryScenarioRepository()


_scenario_repo: ScenarioRepository = _build_scenario_repo()


def _normalize_or_400(payload: dict[str, Any]):
    try:
        return normalize_inputs(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def _json_safe(value: Any) -> Any:
    """
    Runaway growth assumptions can push metrics to inf/nan, which JSON
    cannot carry. Those go out as null.
    """
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_json_safe(v) for v in value]
    return value


def _scenario_item(rec: ScenarioRecord) -> ScenarioItem:
    return ScenarioItem(**{**rec, "results": _json_safe(rec["results"])})


def _qualification_out(q: DebtQualification) -> QualificationOut:
    return QualificationOut(
        eligible=q.eligible,
        reason=q.reason,
        terms=asdict(q.terms) if q.terms is not None else None,
        adjusted_rate=q.adjusted_rate,
        dscr_tier=q.dscr_tier,
    )


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "env": config.ENV}


@app.get("/defaults/{strategy_type}")
def get_defaults(strategy_type: str) -> dict[str, Any]:
    try:
        display = to_display_type(strategy_type)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return default_inputs(display).model_dump()


# -----------------------------
# Underwriting
# -----------------------------

@app.post("/underwrite", response_model=UnderwriteResponse)
def underwrite(payload: UnderwriteRequest) -> UnderwriteResponse:
    inputs = _normalize_or_400(payload.model_dump())
    results = run_underwriting(inputs)
    return UnderwriteResponse(inputs=inputs.model_dump(), results=_json_safe(results.to_dict()))


@app.post("/debt-fund/qualify", response_model=DebtFundResponse)
def qualify(payload: UnderwriteRequest) -> DebtFundResponse:
    """
    Qualify the deal for the Covey Debt Fund. When eligible, the response
    carries the deal re-underwritten on fund terms for comparison.
    """
    inputs = _normalize_or_400(payload.model_dump())
    comparison = compare_with_covey_debt(inputs)

    return DebtFundResponse(
        qualification=_qualification_out(comparison.qualification),
        inputs=comparison.inputs.model_dump() if comparison.inputs is not None else None,
        results=_json_safe(comparison.results.to_dict()) if comparison.results is not None else None,
    )


# -----------------------------
# Scenarios
# -----------------------------

@app.post("/properties/{property_id}/scenarios", response_model=ScenarioItem)
def create_property_scenario(property_id: str, payload: ScenarioCreate) -> ScenarioItem:
    inputs = _normalize_or_400(payload.inputs)
    rec = create_scenario(
        _scenario_repo,
        property_id=property_id,
        inputs=inputs,
        name=payload.name,
        is_primary=payload.is_primary,
        unit_id=payload.unit_id,
    )
    return _scenario_item(rec)


@app.get("/properties/{property_id}/scenarios", response_model=list[ScenarioItem])
def list_property_scenarios(property_id: str) -> list[ScenarioItem]:
    return [_scenario_item(r) for r in _scenario_repo.list_for_property(property_id)]


@app.post("/properties/{property_id}/scenarios/covey-debt", response_model=CoveyScenarioResponse)
def create_property_covey_scenario(property_id: str, payload: CoveyScenarioCreate) -> CoveyScenarioResponse:
    inputs = _normalize_or_400(payload.inputs)
    results = run_underwriting(inputs)

    scenario_count = payload.scenario_count
    if scenario_count is None:
        scenario_count = len(_scenario_repo.list_for_property(property_id))

    outcome = create_covey_debt_scenario(
        property_id=property_id,
        current_inputs=inputs,
        current_results=results,
        scenario_count=scenario_count,
        repo=_scenario_repo,
    )
    return CoveyScenarioResponse(**asdict(outcome))


@app.post("/scenarios/{scenario_id}/promote")
def promote_scenario(scenario_id: str) -> dict[str, Any]:
    if not _scenario_repo.promote(scenario_id):
        raise HTTPException(status_code=404, detail=f"Scenario not found: {scenario_id}")
    return {"scenario_id": scenario_id, "is_primary": True}


@app.delete("/scenarios/{scenario_id}")
def delete_scenario(scenario_id: str) -> dict[str, Any]:
    if not _scenario_repo.delete(scenario_id):
        raise HTTPException(status_code=404, detail=f"Scenario not found: {scenario_id}")
    logger.info("scenario_deleted", extra={"context": {"scenario_id": scenario_id}})
    return {"scenario_id": scenario_id, "deleted": True}


@app.get("/properties/{property_id}/summary")
def property_summary(property_id: str) -> dict[str, Any]:
    summary = _scenario_repo.property_summary(property_id)
    if summary is None:
        raise HTTPException(status_code=404, detail=f"No primary scenario for property: {property_id}")
    return _json_safe(summary)
