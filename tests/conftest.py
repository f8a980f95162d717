import pytest

from data_adapter import snapshot_from_payload


def build_payload(**overrides):
    payload = {
        "symbol": "acme",
        "name": "Acme Industries",
        "price": 100,
        "currency": "USD",
        "fcfPerShare": 5.0,
        "growthRate": 12.0,
        "discountRate": 10.0,
        "terminalRate": 3.0,
        "scenarios": {
            "bear": {"price": 70, "growthRate": 6.0, "narrative": "Demand slows"},
            "base": {"price": 110, "growthRate": 12.0, "narrative": "Steady execution"},
            "bull": {"price": 150, "growthRate": 18.0, "narrative": "New markets"},
        },
        "segments": [
            {"name": "Industrial", "ebitda": 100, "valuationMultiple": 10, "revenue": 400},
            {"name": "Software", "ebitda": 50, "valuationMultiple": 20, "revenue": 120},
        ],
        "netDebt": 200,
        "totalShares": 100,
        "pe": 22.5,
        "industryPe": 25.0,
        "eps": 4.5,
        "revenueGrowth": 15,
        "grahamNumber": 120,
        "financials": {
            "profitLoss": [
                {"year": "Mar 2024", "sales": "1,200", "netProfit": 150, "eps": 4.5},
                {"year": "Mar 2023", "sales": 1000, "netProfit": 120, "eps": 3.6},
            ],
            "balanceSheet": [],
            "cashFlow": [{"year": "Mar 2024", "cashFromOperating": 210}],
        },
    }
    payload.update(overrides)
    return payload


@pytest.fixture(name="build_payload")
def build_payload_fixture():
    return build_payload


@pytest.fixture
def payload():
    return build_payload()


@pytest.fixture
def snapshot():
    return snapshot_from_payload(build_payload(), last_updated="Jan 01, 2026")
