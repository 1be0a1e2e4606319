# tests/test_api_underwrite.py
import pytest


def _rental_payload():
    return {
        "type": "Long Term Rental",
        "purchasePrice": "$325,000",
        "closingCosts": 5000,
        "loanAmount": 243750,
        "interestRate": "6.5%",
        "amortizationYears": 30,
        "grossMonthlyRent": 2500,
        "vacancyRate": 5,
        "propertyTaxes": 4000,
        "insurance": 1500,
        "maintenance": 2000,
        "holdPeriodYears": 5,
        "annualAppreciation": 3,
        "annualRentGrowth": 2,
        "sellingCosts": 6,
        "exitCapRate": 7,
    }


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_underwrite_success(client):
    r = client.post("/underwrite", json=_rental_payload())
    assert r.status_code == 200, r.text

    body = r.json()
    assert body["inputs"]["purchase_price"] == 325000
    assert body["results"]["noi"] == pytest.approx(21000.0)
    assert body["results"]["cap_rate"] == pytest.approx(6.4615, abs=1e-3)
    assert len(body["results"]["yearly_projections"]) == 5
    assert body["results"]["flip_profit"] is None


def test_underwrite_missing_type_returns_400(client):
    payload = _rental_payload()
    del payload["type"]
    r = client.post("/underwrite", json=payload)
    assert r.status_code == 400
    assert "Missing required field" in r.text


def test_underwrite_unknown_type_returns_400(client):
    r = client.post("/underwrite", json={**_rental_payload(), "type": "Office Tower"})
    assert r.status_code == 400
    assert "Unsupported investment type" in r.text


def test_defaults_by_strategy(client):
    r = client.get("/defaults/fix_and_flip")
    assert r.status_code == 200
    body = r.json()
    assert body["type"] == "Fix and Flip"
    assert body["interest_only"] is True

    assert client.get("/defaults/office").status_code == 404


def test_qualify_flip_returns_fund_results(client):
    r = client.post(
        "/debt-fund/qualify",
        json={"type": "Fix and Flip", "purchase_price": 200000, "after_repair_value": 280000},
    )
    assert r.status_code == 200, r.text

    body = r.json()
    assert body["qualification"]["eligible"] is True
    assert body["qualification"]["dscr_tier"] == "N/A"
    assert body["qualification"]["terms"]["term_months"] == 18
    assert body["inputs"]["loan_amount"] == 140000
    assert body["inputs"]["financing_source"] == "covey_debt"
    assert body["results"] is not None


def test_qualify_thin_rental_has_reason_only(client):
    r = client.post(
        "/debt-fund/qualify",
        json={"type": "Long Term Rental", "purchase_price": 300000, "gross_monthly_rent": 1250},
    )
    assert r.status_code == 200

    body = r.json()
    assert body["qualification"]["eligible"] is False
    assert "0.83x" in body["qualification"]["reason"]
    assert body["inputs"] is None
    assert body["results"] is None


def test_underwrite_runaway_growth_serializes_as_null(client):
    payload = {**_rental_payload(), "annualAppreciation": 1000, "holdPeriodYears": 400, "exitCapRate": 0}
    r = client.post("/underwrite", json=payload)
    assert r.status_code == 200, r.text

    results = r.json()["results"]
    assert results["projected_sale_price"] is None
    assert results["noi"] == pytest.approx(21000.0)
    assert results["irr"] == 0.0
