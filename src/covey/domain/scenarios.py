from typing import Any, Mapping

from covey.domain.inputs import InvestmentType

DISPLAY_TO_STRATEGY: dict[str, str] = {
    "Long Term Rental": "long_term_rental",
    "Fix and Flip": "fix_and_flip",
    "Short Term Rental": "short_term_rental",
}

STRATEGY_TO_DISPLAY: dict[str, InvestmentType] = {
    "long_term_rental": "Long Term Rental",
    "fix_and_flip": "Fix and Flip",
    "short_term_rental": "Short Term Rental",
}

DEFAULT_SCENARIO_NAMES: dict[str, str] = {
    "long_term_rental": "Base Case — Long Term",
    "fix_and_flip": "Base Case — Flip",
    "short_term_rental": "Base Case — STR",
}

# property type label (lowercased) -> fund
TYPE_TO_FUND: dict[str, str] = {
    "workforce housing": "bobwhite",
    "long term hold": "pheasant",
    "long term rental": "pheasant",
    "short term rental": "pheasant",
    "build to rent": "chukar",
    "development": "chukar",
    "cohabitation": "woodcock",
    "value add": "woodcock",
    "fix and flip": "grouse",
}

DEFAULT_FUND = "pheasant"


def to_strategy_type(display_type: str) -> str:
    try:
        return DISPLAY_TO_STRATEGY[display_type]
    except KeyError:
        raise ValueError(f"Unknown investment type: {display_type!r}") from None


def to_display_type(strategy_type: str) -> InvestmentType:
    try:
        return STRATEGY_TO_DISPLAY[strategy_type]
    except KeyError:
        raise ValueError(f"Unknown strategy type: {strategy_type!r}") from None


def default_scenario_name(strategy_type: str) -> str:
    return DEFAULT_SCENARIO_NAMES.get(strategy_type, "Base Case")


def fund_for_strategy(type: str) -> str:
    return TYPE_TO_FUND.get(type.lower().strip(), DEFAULT_FUND)


def build_property_summary(inputs: Mapping[str, Any], results: Mapping[str, Any]) -> dict[str, Any]:
    """
    Denormalized snapshot of the primary scenario, stored on the property.

    Percent metrics from the engine are stored as fractions here
    (cap rate 6.5 -> 0.065).
    """
    type_ = str(inputs.get("type", ""))
    is_ltr = type_ == "Long Term Rental"
    rent = float(inputs.get("gross_monthly_rent", 0.0)) if is_ltr else 0.0

    return {
        "price": inputs.get("purchase_price", 0.0),
        "cap_rate": results.get("cap_rate", 0.0) / 100.0,
        "irr": results.get("irr", 0.0) / 100.0,
        "equity_multiple": results.get("equity_multiple", 0.0),
        "type": type_,
        "fund_strategy": fund_for_strategy(type_),
        "bedrooms": inputs.get("bedrooms", 0.0),
        "bathrooms": inputs.get("bathrooms", 0.0),
        "square_feet": inputs.get("square_feet", 0.0),
        "renovations": inputs.get("renovations", 0.0),
        "reserves": inputs.get("reserves", 0.0),
        "debt_costs": inputs.get("closing_costs", 0.0),
        "equity": results.get("total_equity_required", 0.0),
        "ltc": results.get("loan_to_cost", 0.0),
        "interest_rate": inputs.get("interest_rate", 0.0),
        "amortization": inputs.get("amortization_years", 0),
        "exit_cap_rate": inputs.get("exit_cap_rate", 0.0),
        "net_sale_proceeds": results.get("net_sale_proceeds", 0.0),
        "profit_multiple": results.get("equity_multiple", 0.0),
        "in_place_rent": rent,
        "stabilized_rent": rent,
        "noi_margin": results.get("noi_margin", 0.0) / 100.0,
        "dscr": results.get("dscr", 0.0),
        "financing_source": inputs.get("financing_source") or "external",
    }
