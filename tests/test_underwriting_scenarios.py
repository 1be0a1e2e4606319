# tests/test_underwriting_scenarios.py

import math

import pytest
from hypothesis import given, settings, strategies as st

from covey.analysis.underwriting import run_underwriting
from covey.domain.finance import loan_balance, monthly_payment, npv
from covey.domain.inputs import PropertyInputs

from .fixtures.deals import duplex_rental


def _bisect_irr(flows, lo=-0.5, hi=1.0, iterations=200):
    """Independent IRR: plain bisection on NPV."""
    f_lo = npv(lo, flows)
    for _ in range(iterations):
        mid = (lo + hi) / 2
        f_mid = npv(mid, flows)
        if (f_mid > 0) == (f_lo > 0):
            lo, f_lo = mid, f_mid
        else:
            hi = mid
    return (lo + hi) / 2


def test_rental_income_and_expense_lines():
    r = run_underwriting(duplex_rental())

    assert r.gross_scheduled_income == pytest.approx(30_000.0)
    assert r.vacancy_loss == pytest.approx(1_500.0)
    assert r.effective_gross_income == pytest.approx(28_500.0)
    # taxes + insurance + maintenance + flat management
    assert r.total_operating_expenses == pytest.approx(3_000.0 + 1_200.0 + 1_500.0 + 1_800.0)
    assert r.total_operating_expenses == pytest.approx(7_500.0)
    assert r.noi == pytest.approx(21_000.0)
    assert r.cap_rate == pytest.approx(6.4615, abs=1e-3)
    assert r.expense_ratio == pytest.approx(7_500.0 / 28_500.0 * 100.0)


@given(extra=st.floats(min_value=1.0, max_value=50_000.0))
def test_rental_management_is_an_operating_expense(extra):
    base = duplex_rental()
    r1 = run_underwriting(base)
    r2 = run_underwriting(base.model_copy(update={"management": base.management + extra}))

    assert r2.total_operating_expenses == pytest.approx(r1.total_operating_expenses + extra)
    assert r2.noi == pytest.approx(r1.noi - extra)


@pytest.mark.parametrize(
    "update",
    [
        {"annual_rent_growth": 1000.0, "hold_period_years": 400},
        {"annual_appreciation": 1000.0, "hold_period_years": 400, "exit_cap_rate": 0.0},
        {"annual_appreciation": -100.0, "hold_period_years": -1, "exit_cap_rate": 0.0},
    ],
)
def test_runaway_growth_saturates_instead_of_raising(update):
    r = run_underwriting(duplex_rental().model_copy(update=update))

    assert r.noi == pytest.approx(21_000.0)
    assert math.isfinite(r.irr)
    if update.get("exit_cap_rate") == 0.0:
        assert math.isinf(r.projected_sale_price)
    else:
        assert math.isinf(r.yearly_projections[-1].gross_income)


def test_rental_sources_uses_and_debt_coverage():
    inputs = duplex_rental()
    r = run_underwriting(inputs)

    expected_debt = monthly_payment(243_750.0, 6.5, 30, False) * 12
    assert r.total_project_cost == pytest.approx(330_000.0)
    assert r.total_equity_required == pytest.approx(86_250.0)
    assert r.loan_to_value == pytest.approx(75.0)
    assert r.loan_to_cost == pytest.approx(243_750.0 / 330_000.0 * 100.0)

    assert r.annual_debt_service == pytest.approx(expected_debt)
    assert r.dscr == pytest.approx(21_000.0 / expected_debt)
    assert r.dscr == pytest.approx(1.136, abs=1e-3)

    assert r.cash_flow_after_debt == pytest.approx(21_000.0 - expected_debt)
    assert r.monthly_cash_flow == pytest.approx((21_000.0 - expected_debt) / 12)
    assert r.cash_on_cash == pytest.approx((21_000.0 - expected_debt) / 86_250.0 * 100.0)


def test_rental_projection_grows_rent_and_expenses():
    r = run_underwriting(duplex_rental())
    p = r.yearly_projections

    assert [y.year for y in p] == [1, 2, 3, 4, 5]
    assert p[0].gross_income == pytest.approx(30_000.0)
    assert p[1].gross_income == pytest.approx(30_600.0)
    assert p[1].operating_expenses == pytest.approx(7_650.0)
    assert p[4].noi == pytest.approx(21_000.0 * 1.02 ** 4)
    assert p[2].property_value == pytest.approx(325_000.0 * 1.03 ** 3)
    assert p[-1].cumulative_cash_flow == pytest.approx(sum(y.cash_flow for y in p))
    assert p[0].equity == pytest.approx(p[0].property_value - p[0].loan_balance)


def test_rental_exit_on_forward_noi_at_exit_cap():
    r = run_underwriting(duplex_rental())

    expected_sale = 21_000.0 * 1.02 ** 5 / 0.07
    expected_balance = loan_balance(243_750.0, 6.5, 30, 5, False)
    assert r.projected_sale_price == pytest.approx(expected_sale)
    assert r.loan_balance == pytest.approx(expected_balance)
    assert r.net_sale_proceeds == pytest.approx(expected_sale * 0.94 - expected_balance)


def test_rental_irr_matches_independent_solve():
    r = run_underwriting(duplex_rental())

    flows = [-86_250.0] + [y.cash_flow for y in r.yearly_projections]
    flows[-1] += r.net_sale_proceeds
    assert r.irr_cash_flows == pytest.approx(flows)

    assert r.irr / 100.0 == pytest.approx(_bisect_irr(flows), abs=1e-4)
    assert npv(r.irr / 100.0, flows) == pytest.approx(0.0, abs=1.0)


def test_rental_equity_multiple_and_profit():
    r = run_underwriting(duplex_rental())

    received = r.yearly_projections[-1].cumulative_cash_flow + r.net_sale_proceeds
    assert r.equity_multiple == pytest.approx(received / 86_250.0)
    assert r.total_profit == pytest.approx(received - 86_250.0)
    assert r.annualized_return == pytest.approx((r.equity_multiple ** (1 / 5) - 1) * 100.0)


def test_per_unit_metrics_split_by_door_count():
    inputs = duplex_rental().model_copy(update={"units": 2})
    r = run_underwriting(inputs)

    assert r.price_per_unit == pytest.approx(162_500.0)
    assert r.rent_per_unit == pytest.approx(1_250.0)
    assert r.noi_per_unit == pytest.approx(10_500.0)


def test_no_exit_cap_falls_back_to_appreciation():
    inputs = duplex_rental().model_copy(update={"exit_cap_rate": 0.0})
    r = run_underwriting(inputs)
    assert r.projected_sale_price == pytest.approx(325_000.0 * 1.03 ** 5)


def test_all_cash_deal_has_zero_dscr():
    inputs = duplex_rental().model_copy(update={"loan_amount": 0.0})
    r = run_underwriting(inputs)

    assert r.annual_debt_service == 0.0
    assert r.dscr == 0.0
    assert r.loan_to_value == 0.0
    assert r.total_equity_required == pytest.approx(330_000.0)


def test_zero_hold_period_has_no_projection():
    inputs = duplex_rental().model_copy(update={"hold_period_years": 0})
    r = run_underwriting(inputs)

    assert r.yearly_projections == []
    assert r.irr_cash_flows == [-86_250.0]
    assert r.irr == 0.0
    assert r.annualized_return == 0.0
    assert r.loan_balance == 243_750.0


def test_blank_form_does_not_raise():
    r = run_underwriting(PropertyInputs())
    assert r.noi == 0.0
    assert r.cap_rate == 0.0
    assert r.cash_on_cash == 0.0
    assert r.equity_multiple == 0.0


def test_engine_is_deterministic():
    inputs = duplex_rental()
    assert run_underwriting(inputs) == run_underwriting(inputs)


def test_rental_ignores_flip_and_str_fields():
    r = run_underwriting(duplex_rental())
    assert r.flip_profit is None
    assert r.flip_roi is None
    assert r.flip_annualized_roi is None
    assert r.revenue_per_available_night is None
    assert r.average_daily_rate is None


@given(
    rent=st.floats(min_value=500.0, max_value=10_000.0),
    delta=st.floats(min_value=50.0, max_value=1_000.0),
)
def test_higher_rent_improves_metrics(rent, delta):
    base = duplex_rental()
    r1 = run_underwriting(base.model_copy(update={"gross_monthly_rent": rent}))
    r2 = run_underwriting(base.model_copy(update={"gross_monthly_rent": rent + delta}))

    assert r2.noi > r1.noi
    assert r2.dscr > r1.dscr
    assert r2.cash_on_cash > r1.cash_on_cash
    assert r2.cap_rate > r1.cap_rate


_money = st.floats(min_value=-1e7, max_value=1e7, allow_nan=False, allow_infinity=False)
_pct = st.floats(min_value=-1_000.0, max_value=1_000.0, allow_nan=False, allow_infinity=False)


@settings(max_examples=200, deadline=None)
@given(
    fields=st.fixed_dictionaries(
        {
            "type": st.sampled_from(["Long Term Rental", "Fix and Flip", "Short Term Rental"]),
            "purchase_price": _money,
            "closing_costs": _money,
            "renovations": _money,
            "loan_amount": _money,
            "interest_rate": _pct,
            "amortization_years": st.integers(min_value=-5, max_value=40),
            "interest_only": st.booleans(),
            "gross_monthly_rent": _money,
            "vacancy_rate": _pct,
            "property_taxes": _money,
            "management": _money,
            "hold_period_years": st.integers(min_value=-3, max_value=200),
            "annual_appreciation": _pct,
            "annual_rent_growth": _pct,
            "exit_cap_rate": _pct,
            "selling_costs": _pct,
            "after_repair_value": _money,
            "months_to_complete": st.floats(min_value=-24.0, max_value=60.0),
            "avg_nightly_rate": _money,
            "occupancy_rate": _pct,
            "avg_stay_duration": st.floats(min_value=-5.0, max_value=30.0),
            "units": st.integers(min_value=-2, max_value=50),
        }
    )
)
def test_garbage_inputs_never_raise_and_noi_identity_holds(fields):
    r = run_underwriting(PropertyInputs(**fields))

    assert r.noi == r.effective_gross_income - r.total_operating_expenses
    assert r.effective_gross_income == r.gross_scheduled_income - r.vacancy_loss
    assert r.total_equity_required == r.total_project_cost - fields["loan_amount"]
    assert r.annual_debt_service == r.monthly_debt_service * 12.0
    assert not math.isnan(r.noi)
