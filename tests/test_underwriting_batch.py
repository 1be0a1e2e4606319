import math

import numpy as np
import pandas as pd
import pytest

from covey.analysis.underwriting import run_underwriting
from covey.analysis.underwriting_batch import BATCH_METRICS, run_underwriting_df, summarize_batch

from .fixtures.deals import cosmetic_flip, duplex_rental, thin_rental


def _frame(*deals, extra_rows=()):
    rows = [d.model_dump() for d in deals]
    rows.extend(extra_rows)
    return pd.DataFrame(rows)


def test_batch_matches_single_deal_engine():
    df = _frame(duplex_rental(), cosmetic_flip())
    out = run_underwriting_df(df)

    assert list(out.columns) == ["type", *BATCH_METRICS, "covey_eligible", "error"]
    assert len(out) == 2
    assert out.loc[0, "noi"] == pytest.approx(run_underwriting(duplex_rental()).noi)
    assert out.loc[1, "irr"] == pytest.approx(run_underwriting(cosmetic_flip()).irr)
    assert out["error"].isna().all()


def test_batch_keeps_bad_rows_with_error():
    df = _frame(duplex_rental(), extra_rows=[{"type": "Office Tower", "purchase_price": 1_000_000}])
    out = run_underwriting_df(df)

    assert "Unsupported investment type" in out.loc[1, "error"]
    assert np.isnan(out.loc[1, "noi"])
    assert not out.loc[1, "covey_eligible"]


def test_batch_tolerates_blank_cells():
    df = _frame(duplex_rental())
    df.loc[0, "closing_costs"] = np.nan
    out = run_underwriting_df(df)

    assert out.loc[0, "total_equity_required"] == pytest.approx(325_000.0 - 243_750.0)


def test_summary_counts_and_eligibility():
    df = _frame(
        duplex_rental(),
        cosmetic_flip(),
        thin_rental(),
        extra_rows=[{"type": ""}],
    )
    summary = summarize_batch(run_underwriting_df(df))

    assert summary.n_scenarios == 3
    assert summary.n_failed == 1
    # only the flip qualifies; both rentals are under 1.1x at the fund rate
    assert summary.n_covey_eligible == 1
    assert summary.p5_dscr <= summary.p50_dscr <= summary.p95_dscr
    assert summary.p5_irr <= summary.p50_irr <= summary.p95_irr


def test_summary_of_all_failures_is_nan():
    df = pd.DataFrame([{"type": "Office Tower"}])
    summary = summarize_batch(run_underwriting_df(df))

    assert summary.n_scenarios == 0
    assert summary.n_failed == 1
    assert math.isnan(summary.mean_irr)
