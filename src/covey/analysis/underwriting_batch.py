# src/covey/analysis/underwriting_batch.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

import numpy as np
import pandas as pd
from loguru import logger

from covey.analysis.underwriting import run_underwriting
from covey.domain.debt_fund import qualify_for_covey_debt
from covey.services.validation import normalize_inputs

# Headline metrics carried into the batch table, in column order
BATCH_METRICS = (
    "total_equity_required",
    "effective_gross_income",
    "total_operating_expenses",
    "noi",
    "annual_debt_service",
    "cash_flow_after_debt",
    "cap_rate",
    "cash_on_cash",
    "dscr",
    "irr",
    "equity_multiple",
    "total_profit",
    "annualized_return",
    "projected_sale_price",
    "net_sale_proceeds",
)


@dataclass
class BatchSummary:
    """
    Reduction over a batch of underwritten scenarios.
    """
    n_scenarios: int
    n_failed: int
    mean_irr: float
    p5_irr: float
    p50_irr: float
    p95_irr: float
    mean_dscr: float
    p5_dscr: float
    p50_dscr: float
    p95_dscr: float
    n_covey_eligible: int


def _row_to_payload(row: pd.Series) -> Dict[str, Any]:
    # CSV blanks arrive as NaN; the normalizer turns them into 0
    return {k: (None if isinstance(v, float) and np.isnan(v) else v) for k, v in row.items()}


def run_underwriting_df(df: pd.DataFrame) -> pd.DataFrame:
    """
    Underwrite every row of `df` (one scenario per row, form-style columns).

    Rows that cannot be normalized (unknown type) are kept with an `error`
    and NaN metrics so the output lines up with the input index.
    """
    records = []
    for idx, row in df.iterrows():
        rec: Dict[str, Any] = {"row": idx}
        try:
            inputs = normalize_inputs(_row_to_payload(row))
        except ValueError as e:
            logger.warning("Skipping batch row {}: {}", idx, e)
            rec.update({m: np.nan for m in BATCH_METRICS})
            rec.update(type=None, covey_eligible=False, error=str(e))
            records.append(rec)
            continue

        results = run_underwriting(inputs)
        qualification = qualify_for_covey_debt(inputs, results.noi)

        rec["type"] = inputs.type
        rec.update({m: getattr(results, m) for m in BATCH_METRICS})
        rec["covey_eligible"] = qualification.eligible
        rec["error"] = None
        records.append(rec)

    out = pd.DataFrame.from_records(records, columns=["row", "type", *BATCH_METRICS, "covey_eligible", "error"])
    out = out.set_index("row")
    out.index.name = df.index.name
    logger.info("Underwrote {} scenarios ({} failed)", len(out), int(out["error"].notna().sum()))
    return out


def summarize_batch(results: pd.DataFrame) -> BatchSummary:
    """
    Collapse a run_underwriting_df table into portfolio-level stats.
    Failed rows count toward n_failed only.
    """
    ok = results[results["error"].isna()] if "error" in results else results
    irr = ok["irr"].to_numpy(dtype=float)
    dscr = ok["dscr"].to_numpy(dtype=float)

    n = int(irr.shape[0])
    n_failed = int(len(results) - n)

    if n == 0:
        nan = float("nan")
        return BatchSummary(
            n_scenarios=0,
            n_failed=n_failed,
            mean_irr=nan,
            p5_irr=nan,
            p50_irr=nan,
            p95_irr=nan,
            mean_dscr=nan,
            p5_dscr=nan,
            p50_dscr=nan,
            p95_dscr=nan,
            n_covey_eligible=0,
        )

    def _q(x: np.ndarray, q: float) -> float:
        return float(np.nanquantile(x, q))

    return BatchSummary(
        n_scenarios=n,
        n_failed=n_failed,
        mean_irr=float(np.nanmean(irr)),
        p5_irr=_q(irr, 0.05),
        p50_irr=_q(irr, 0.50),
        p95_irr=_q(irr, 0.95),
        mean_dscr=float(np.nanmean(dscr)),
        p5_dscr=_q(dscr, 0.05),
        p50_dscr=_q(dscr, 0.50),
        p95_dscr=_q(dscr, 0.95),
        n_covey_eligible=int(ok["covey_eligible"].astype(bool).sum()),
    )
