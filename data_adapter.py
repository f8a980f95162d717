"""
DataAdapter: Normalize the AI provider's analysis bundle
=========================================================
The provider returns one large JSON document per search. This module turns it
into an immutable FinancialSnapshot the valuation engines can trust.

Key responsibilities:
1. Coerce numbers that arrive as numbers, numeric strings ("1,200", "12.5%") or not at all
2. Apply defensive fallbacks only where arithmetic needs them (shares -> 1, net debt -> 0)
3. Map financial statement rows onto a closed set of metric keys (no free-form lookups)
4. Order statement periods oldest -> newest
5. Keep the display-only narrative blocks untouched for the dashboard
"""

import logging
import re
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

REPORT_TYPES = ("consolidated", "standalone")
SCENARIO_TAGS = ("bear", "base", "bull")

# Shares fallback is a display guard against division by zero, not an estimate.
DEFAULT_TOTAL_SHARES = 1.0
DEFAULT_NET_DEBT = 0.0

_NUMBER_PATTERN = re.compile(r"[-+]?\d*\.?\d+(?:[eE][-+]?\d+)?")
_YEAR_PATTERN = re.compile(r"\d{4}")


def to_float(value, default: Optional[float] = None) -> Optional[float]:
    """
    Coerce a provider value into a float.

    Accepts ints/floats, and strings such as "1,234.5", "12%", "$3.2". Anything
    else (None, "", "N/A", nested objects, NaN) returns `default`.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
        return default if number != number else number
    if isinstance(value, str):
        text = value.replace(",", "").strip()
        match = _NUMBER_PATTERN.search(text)
        if match:
            try:
                return float(match.group(0))
            except ValueError:
                return default
    return default


class MetricKey(str, Enum):
    """Closed set of statement line items the provider is asked for."""

    # Profit & Loss
    SALES = "sales"
    EXPENSES = "expenses"
    OPERATING_PROFIT = "operatingProfit"
    OPM = "opm"
    OTHER_INCOME = "otherIncome"
    INTEREST = "interest"
    DEPRECIATION = "depreciation"
    PROFIT_BEFORE_TAX = "profitBeforeTax"
    TAX = "tax"
    NET_PROFIT = "netProfit"
    EPS = "eps"
    DIVIDEND_PAYOUT = "dividendPayout"

    # Balance Sheet
    EQUITY_CAPITAL = "equityCapital"
    RESERVES = "reserves"
    BORROWINGS = "borrowings"
    OTHER_LIABILITIES = "otherLiabilities"
    TOTAL_LIABILITIES = "totalLiabilities"
    FIXED_ASSETS = "fixedAssets"
    CWIP = "cwip"
    INVESTMENTS = "investments"
    OTHER_ASSETS = "otherAssets"
    TOTAL_ASSETS = "totalAssets"

    # Cash Flow
    CASH_FROM_OPERATING = "cashFromOperating"
    CASH_FROM_INVESTING = "cashFromInvesting"
    CASH_FROM_FINANCING = "cashFromFinancing"
    NET_CASH_FLOW = "netCashFlow"


# (metric, row label) in display order
PROFIT_LOSS_METRICS: List[Tuple[MetricKey, str]] = [
    (MetricKey.SALES, "Sales"),
    (MetricKey.EXPENSES, "Expenses"),
    (MetricKey.OPERATING_PROFIT, "Op. Profit"),
    (MetricKey.OPM, "OPM %"),
    (MetricKey.OTHER_INCOME, "Other Inc."),
    (MetricKey.INTEREST, "Interest"),
    (MetricKey.DEPRECIATION, "Depreciation"),
    (MetricKey.PROFIT_BEFORE_TAX, "PBT"),
    (MetricKey.TAX, "Tax"),
    (MetricKey.NET_PROFIT, "Net Profit"),
    (MetricKey.EPS, "EPS"),
    (MetricKey.DIVIDEND_PAYOUT, "Div Payout %"),
]

BALANCE_SHEET_METRICS: List[Tuple[MetricKey, str]] = [
    (MetricKey.EQUITY_CAPITAL, "Eq. Capital"),
    (MetricKey.RESERVES, "Reserves"),
    (MetricKey.BORROWINGS, "Borrowings"),
    (MetricKey.OTHER_LIABILITIES, "Other Liab."),
    (MetricKey.TOTAL_LIABILITIES, "Total Liab."),
    (MetricKey.FIXED_ASSETS, "Fixed Assets"),
    (MetricKey.CWIP, "CWIP"),
    (MetricKey.INVESTMENTS, "Investments"),
    (MetricKey.OTHER_ASSETS, "Other Assets"),
    (MetricKey.TOTAL_ASSETS, "Total Assets"),
]

CASH_FLOW_METRICS: List[Tuple[MetricKey, str]] = [
    (MetricKey.CASH_FROM_OPERATING, "Cash from Ops"),
    (MetricKey.CASH_FROM_INVESTING, "Cash from Inv"),
    (MetricKey.CASH_FROM_FINANCING, "Cash from Fin"),
    (MetricKey.NET_CASH_FLOW, "Net Cash Flow"),
]


@dataclass(frozen=True)
class StatementPeriod:
    """One column of a financial statement (e.g. "Mar 2024" or "TTM")."""
    label: str
    values: Dict[MetricKey, Optional[float]] = field(default_factory=dict)

    def get(self, key: MetricKey) -> Optional[float]:
        return self.values.get(key)


@dataclass(frozen=True)
class ScenarioCase:
    """Narrative bear/base/bull case from the provider."""
    price: float = 0.0
    growth_rate: float = 0.0
    narrative: str = ""


@dataclass(frozen=True)
class Segment:
    """A business unit row for Sum-of-the-Parts."""
    name: str
    ebitda: float
    valuation_multiple: float
    revenue: float = 0.0
    growth_rate: float = 0.0
    narrative: str = ""

    @property
    def ev(self) -> float:
        return self.ebitda * self.valuation_multiple


@dataclass(frozen=True)
class FinancialSnapshot:
    """Provider-supplied financials for one analysis. Read-only after parsing."""
    symbol: str
    name: str
    price: float
    currency: str = "USD"
    report_type: str = "consolidated"

    # DCF inputs (percentages as whole numbers, e.g. 12.5 for 12.5%)
    fcf_per_share: float = 0.0
    growth_rate: float = 0.0
    discount_rate: float = 10.0
    terminal_rate: float = 3.0
    scenarios: Dict[str, ScenarioCase] = field(default_factory=dict)

    # SOTP inputs
    segments: Tuple[Segment, ...] = ()
    net_debt: float = DEFAULT_NET_DEBT
    total_shares: float = DEFAULT_TOTAL_SHARES

    # Header
    sector: str = ""
    industry: str = ""
    market_cap_category: str = ""
    market_cap: str = ""
    listing_date: str = ""
    previous_close: Optional[float] = None
    previous_open: Optional[float] = None
    open_price: Optional[float] = None
    high_52_week: Optional[float] = None
    low_52_week: Optional[float] = None
    face_value: Optional[float] = None
    book_value: Optional[float] = None

    # Ratios used by the insight cards
    pe: Optional[float] = None
    pb: Optional[float] = None
    sector_pe: Optional[float] = None
    industry_pe: Optional[float] = None
    dividend_yield: Optional[float] = None
    ebitda: str = ""
    roce: Optional[float] = None
    roe: Optional[float] = None
    roic: Optional[float] = None
    wacc: Optional[float] = None
    eps: Optional[float] = None
    pat: str = ""
    free_cash_flow: str = ""
    revenue: str = ""
    revenue_growth: Optional[float] = None
    opm: Optional[float] = None
    peg_ratio: Optional[float] = None
    earnings_yield: Optional[float] = None
    debt_to_equity: Optional[float] = None
    interest_coverage: Optional[float] = None
    graham_number: Optional[float] = None
    graham_growth_value: Optional[float] = None
    piotroski_f_score: Optional[float] = None
    ev_to_ebitda: Optional[float] = None
    owner_earnings_per_share: Optional[float] = None
    buffett_ten_cap_price: Optional[float] = None
    share_buyback_yield: Optional[float] = None
    intrinsic_value: Optional[float] = None
    reverse_dcf_rate: Optional[float] = None
    moat_rating: str = ""
    moat_source: str = ""

    # Statements
    profit_loss: Tuple[StatementPeriod, ...] = ()
    balance_sheet: Tuple[StatementPeriod, ...] = ()
    cash_flow: Tuple[StatementPeriod, ...] = ()

    # Display-only blocks, passed through as delivered
    growth_tables: Dict[str, Dict[str, str]] = field(default_factory=dict)
    peers: List[Dict[str, Any]] = field(default_factory=list)
    growth_factors: List[str] = field(default_factory=list)
    risk_factors: List[str] = field(default_factory=list)
    financial_review: str = ""
    latest_insights: List[Dict[str, Any]] = field(default_factory=list)
    earnings: Dict[str, Any] = field(default_factory=dict)
    company_profile: Dict[str, Any] = field(default_factory=dict)
    management: Dict[str, Any] = field(default_factory=dict)
    market_activity: Dict[str, Any] = field(default_factory=dict)
    technicals: Dict[str, Any] = field(default_factory=dict)

    last_updated: str = ""

    def scenario(self, tag: str) -> ScenarioCase:
        """Narrative case for `tag`; the base case falls back to the snapshot growth rate."""
        if tag not in SCENARIO_TAGS:
            raise ValueError(f"Unknown scenario '{tag}'. Expected one of {SCENARIO_TAGS}")
        case = self.scenarios.get(tag)
        if case is not None:
            return case
        return ScenarioCase(price=0.0, growth_rate=self.growth_rate, narrative="")

    @property
    def has_segments(self) -> bool:
        return len(self.segments) > 0

    def to_dict(self):
        return asdict(self)


def _text(value, default: str = "") -> str:
    if value is None:
        return default
    return str(value).strip()


def _year_of(label: str) -> int:
    match = _YEAR_PATTERN.search(label or "")
    return int(match.group(0)) if match else 0


def _chronological(periods: List[StatementPeriod]) -> List[StatementPeriod]:
    """
    Providers return either oldest-first or newest-first. If the first column
    carries a later year than the last one, flip the list.
    """
    if len(periods) > 1:
        first = _year_of(periods[0].label)
        last = _year_of(periods[-1].label)
        if first > last and last != 0:
            return list(reversed(periods))
    return periods


def parse_statement(rows, metrics: List[Tuple[MetricKey, str]]) -> Tuple[StatementPeriod, ...]:
    """Map provider rows (`{"year": ..., "<metric>": ...}`) onto typed periods."""
    periods = []
    for row in rows or []:
        if not isinstance(row, dict):
            continue
        values = {key: to_float(row.get(key.value)) for key, _ in metrics}
        periods.append(StatementPeriod(label=_text(row.get("year"), "—"), values=values))
    return tuple(_chronological(periods))


def parse_segments(rows) -> Tuple[Segment, ...]:
    segments = []
    for row in rows or []:
        if not isinstance(row, dict):
            continue
        segments.append(Segment(
            name=_text(row.get("name"), "Unnamed segment"),
            ebitda=to_float(row.get("ebitda"), 0.0),
            valuation_multiple=to_float(row.get("valuationMultiple"), 0.0),
            revenue=to_float(row.get("revenue"), 0.0),
            growth_rate=to_float(row.get("growthRate"), 0.0),
            narrative=_text(row.get("narrative")),
        ))
    return tuple(segments)


def parse_scenarios(raw, base_growth: float) -> Dict[str, ScenarioCase]:
    raw = raw if isinstance(raw, dict) else {}
    scenarios = {}
    for tag in SCENARIO_TAGS:
        case = raw.get(tag)
        if not isinstance(case, dict):
            scenarios[tag] = ScenarioCase(growth_rate=base_growth)
            continue
        scenarios[tag] = ScenarioCase(
            price=to_float(case.get("price"), 0.0),
            growth_rate=to_float(case.get("growthRate"), base_growth),
            narrative=_text(case.get("narrative")),
        )
    return scenarios


def _positive_or(value, default: float) -> float:
    number = to_float(value)
    if number is None or number <= 0:
        return default
    return number


def _dict(value) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _list(value) -> List[Any]:
    return value if isinstance(value, list) else []


def snapshot_from_payload(payload: Dict[str, Any], report_type: str = "consolidated",
                          last_updated: Optional[str] = None) -> FinancialSnapshot:
    """
    Build a FinancialSnapshot from the provider's camelCase JSON document.

    Raises:
        ValueError: payload is not a JSON object
    """
    if not isinstance(payload, dict):
        raise ValueError("Analysis payload must be a JSON object")

    growth_rate = to_float(payload.get("growthRate"), 0.0)
    total_shares = _positive_or(payload.get("totalShares"), DEFAULT_TOTAL_SHARES)
    if to_float(payload.get("totalShares")) is None:
        logger.debug("totalShares missing from payload; using display fallback of 1")

    financials = _dict(payload.get("financials"))
    growth_tables = {
        name: {k: _text(v) for k, v in _dict(payload.get(name)).items()}
        for name in ("salesGrowth", "profitGrowth", "stockPriceCagr", "roeHistory")
        if isinstance(payload.get(name), dict)
    }

    return FinancialSnapshot(
        symbol=_text(payload.get("symbol")).upper(),
        name=_text(payload.get("name")) or _text(payload.get("symbol")).upper(),
        price=to_float(payload.get("price"), 0.0),
        currency=_text(payload.get("currency"), "USD") or "USD",
        report_type=report_type,
        fcf_per_share=to_float(payload.get("fcfPerShare"), 0.0),
        growth_rate=growth_rate,
        discount_rate=to_float(payload.get("discountRate"), 10.0),
        terminal_rate=to_float(payload.get("terminalRate"), 3.0),
        scenarios=parse_scenarios(payload.get("scenarios"), growth_rate),
        segments=parse_segments(payload.get("segments")),
        net_debt=to_float(payload.get("netDebt"), DEFAULT_NET_DEBT),
        total_shares=total_shares,
        sector=_text(payload.get("sector")),
        industry=_text(payload.get("industry")),
        market_cap_category=_text(payload.get("marketCapCategory")),
        market_cap=_text(payload.get("marketCap")),
        listing_date=_text(payload.get("listingDate")),
        previous_close=to_float(payload.get("previousClose")),
        previous_open=to_float(payload.get("previousOpen")),
        open_price=to_float(payload.get("openPrice")),
        high_52_week=to_float(payload.get("high52Week")),
        low_52_week=to_float(payload.get("low52Week")),
        face_value=to_float(payload.get("faceValue")),
        book_value=to_float(payload.get("bookValue")),
        pe=to_float(payload.get("pe")),
        pb=to_float(payload.get("pb")),
        sector_pe=to_float(payload.get("sectorPe")),
        industry_pe=to_float(payload.get("industryPe")),
        dividend_yield=to_float(payload.get("dividendYield")),
        ebitda=_text(payload.get("ebitda")),
        roce=to_float(payload.get("roce")),
        roe=to_float(payload.get("roe")),
        roic=to_float(payload.get("roic")),
        wacc=to_float(payload.get("wacc")),
        eps=to_float(payload.get("eps")),
        pat=_text(payload.get("pat")),
        free_cash_flow=_text(payload.get("freeCashFlow")),
        revenue=_text(payload.get("revenue")),
        revenue_growth=to_float(payload.get("revenueGrowth")),
        opm=to_float(payload.get("opm")),
        peg_ratio=to_float(payload.get("pegRatio")),
        earnings_yield=to_float(payload.get("earningsYield")),
        debt_to_equity=to_float(payload.get("debtToEquity")),
        interest_coverage=to_float(payload.get("interestCoverage")),
        graham_number=to_float(payload.get("grahamNumber")),
        graham_growth_value=to_float(payload.get("grahamGrowthValue")),
        piotroski_f_score=to_float(payload.get("piotroskiFScore")),
        ev_to_ebitda=to_float(payload.get("evToEbitda")),
        owner_earnings_per_share=to_float(payload.get("ownerEarningsPerShare")),
        buffett_ten_cap_price=to_float(payload.get("buffettTenCapPrice")),
        share_buyback_yield=to_float(payload.get("shareBuybackYield")),
        intrinsic_value=to_float(payload.get("intrinsicValue")),
        reverse_dcf_rate=to_float(payload.get("reverseDcfRate")),
        moat_rating=_text(payload.get("moatRating")),
        moat_source=_text(payload.get("moatSource")),
        profit_loss=parse_statement(financials.get("profitLoss"), PROFIT_LOSS_METRICS),
        balance_sheet=parse_statement(financials.get("balanceSheet"), BALANCE_SHEET_METRICS),
        cash_flow=parse_statement(financials.get("cashFlow"), CASH_FLOW_METRICS),
        growth_tables=growth_tables,
        peers=_list(payload.get("peers")),
        growth_factors=[_text(x) for x in _list(payload.get("growthFactors"))],
        risk_factors=[_text(x) for x in _list(payload.get("riskFactors"))],
        financial_review=_text(payload.get("financialReview")),
        latest_insights=_list(payload.get("latestInsights")),
        earnings=_dict(payload.get("earnings")),
        company_profile=_dict(payload.get("companyProfile")),
        management=_dict(payload.get("management")),
        market_activity=_dict(payload.get("marketActivity")),
        technicals=_dict(payload.get("technicals")),
        last_updated=last_updated or datetime.now().strftime("%b %d, %Y"),
    )
