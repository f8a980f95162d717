"""
DCF UI Adapter: Transform engine output into UI-safe, traceable format
========================================================================
This adapter:
1. Formats values consistently (currency symbol, units, no silent zeros)
2. Turns projection rows and SOTP segments into pandas DataFrames for Altair
3. Builds the EV -> equity -> per-share bridge tables
4. Transforms trace steps and statements into renderable tables
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from data_adapter import MetricKey, StatementPeriod
from dcf_engine import DCFInputs, DCFResult, ScenarioParams
from sotp_engine import SOTPResult

CURRENCY_SYMBOLS = {
    "USD": "$",
    "INR": "₹",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CNY": "¥",
}

PROJECTION_COLUMNS = ["year", "growth_used", "fcf", "discounted"]
SEGMENT_COLUMNS = ["name", "ebitda", "valuation_multiple", "ev", "share_pct"]


def currency_symbol(code: str) -> str:
    code = (code or "").upper()
    return CURRENCY_SYMBOLS.get(code, f"{code} " if code else "")


def format_money(value: Optional[float], currency: str = "USD", precision: int = 2) -> str:
    if value is None:
        return "—"
    symbol = currency_symbol(currency)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.{precision}f}"


def format_large_money(value: Optional[float], currency: str = "USD", precision: int = 1) -> str:
    """Compact currency format for absolute amounts (EV, net debt)."""
    if value is None:
        return "—"
    symbol = currency_symbol(currency)
    sign = "-" if value < 0 else ""
    v = abs(value)
    if v >= 1e12:
        return f"{sign}{symbol}{v/1e12:.{precision}f}T"
    if v >= 1e9:
        return f"{sign}{symbol}{v/1e9:.{precision}f}B"
    if v >= 1e6:
        return f"{sign}{symbol}{v/1e6:.{precision}f}M"
    return f"{sign}{symbol}{v:,.{precision}f}"


def format_pct(value: Optional[float], precision: int = 1, signed: bool = False) -> str:
    if value is None:
        return "—"
    return f"{value:+.{precision}f}%" if signed else f"{value:.{precision}f}%"


def format_multiple(value: Optional[float], precision: int = 1) -> str:
    if value is None:
        return "—"
    return f"{value:.{precision}f}x"


def format_number(value: Optional[float], precision: int = 2) -> str:
    if value is None:
        return "—"
    return f"{value:,.{precision}f}"


@dataclass
class FinancialMetric:
    """A single displayed metric with its unit."""
    name: str
    value: Optional[float]
    units: str = "USD"  # currency code, "%", "x" or "" for plain numbers
    notes: Optional[str] = None

    def formatted(self, precision: int = 2) -> str:
        if self.value is None:
            return "—"
        if self.units == "%":
            return format_pct(self.value, precision)
        if self.units == "x":
            return format_multiple(self.value, precision)
        if not self.units:
            return format_number(self.value, precision)
        return format_money(self.value, self.units, precision)

    def to_dict(self):
        return {
            "name": self.name,
            "value": self.value,
            "units": self.units,
            "notes": self.notes,
            "formatted": self.formatted(),
        }


class DCFUIAdapter:
    """Transform a DCFResult into tables and chart series."""

    def __init__(self, result: DCFResult, params: ScenarioParams, inputs: DCFInputs,
                 price: float, currency: str = "USD"):
        self.result = result
        self.params = params
        self.inputs = inputs
        self.price = price
        self.currency = currency

    def projection_frame(self) -> pd.DataFrame:
        """Y1..Y10 series keyed by year label, in projection order."""
        rows = [p.to_dict() for p in self.result.projections]
        return pd.DataFrame(rows, columns=PROJECTION_COLUMNS)

    def chart_frame(self) -> pd.DataFrame:
        """Long-format projection data (one row per year and series) for a grouped Altair bar chart."""
        frame = self.projection_frame()
        long = frame.melt(id_vars=["year"], value_vars=["fcf", "discounted"],
                          var_name="series", value_name="value")
        long["series"] = long["series"].map({"fcf": "Projected FCF", "discounted": "Present Value"})
        return long

    def headline_metrics(self) -> List[FinancialMetric]:
        return [
            FinancialMetric("Intrinsic Value / Share", self.result.intrinsic_value_per_share, self.currency),
            FinancialMetric("Current Price", self.price, self.currency),
            FinancialMetric("Margin of Safety", self.result.margin_of_safety_pct, "%"),
            FinancialMetric("Terminal Value Share of EV", self.result.tv_dominance_pct, "%"),
        ]

    def format_assumptions_table(self) -> List[Dict]:
        if self.inputs.terminal_method == "growth":
            terminal = ("Terminal Growth Rate", format_pct(self.params.terminal_val), "Gordon Growth perpetuity")
        else:
            terminal = ("Exit Multiple", format_multiple(self.params.terminal_val), "EV/FCF at year 10")
        decay = "On" if self.inputs.use_decay else "Off"
        return [
            {"Assumption": "Starting FCF / Share", "Value": format_money(self.inputs.fcf, self.currency), "Notes": "Base year"},
            {"Assumption": "Growth Rate (Year 1)", "Value": format_pct(self.params.growth_rate), "Notes": f"Decay {decay}"},
            {"Assumption": "Decay Target", "Value": format_pct(self.result.decay_target), "Notes": "Year 10 growth when decay is on"},
            {"Assumption": "Discount Rate", "Value": format_pct(self.params.discount_rate), "Notes": "Required return"},
            {"Assumption": terminal[0], "Value": terminal[1], "Notes": terminal[2]},
            {"Assumption": "Net Debt / Share", "Value": format_money(self.inputs.net_debt_per_share, self.currency), "Notes": "Subtracted from EV"},
            {"Assumption": "Forecast Period", "Value": f"{self.inputs.projection_years} years", "Notes": ""},
        ]

    def format_fcf_projection_table(self) -> List[Dict]:
        rows = []
        for p in self.result.projections:
            rows.append({
                "Year": p.label,
                "Growth": format_pct(p.growth_used),
                "FCF / Share": format_money(p.fcf, self.currency),
                "PV(FCF)": format_money(p.discounted, self.currency),
            })
        return rows

    def format_bridge_table(self) -> List[Dict]:
        """EV → Equity Value → Per-Share bridge."""
        r = self.result
        years = self.inputs.projection_years
        tv_label = "Gordon Growth" if r.terminal_method == "growth" else "Exit Multiple"
        return [
            {
                "Component": f"PV(FCF Years 1–{years})",
                "Value": format_money(r.pv_fcf_sum, self.currency),
                "Formula/Notes": f"Σ(FCF_t / (1+r)^t) for t=1..{years}",
            },
            {
                "Component": f"Terminal Value ({tv_label})",
                "Value": format_money(r.terminal_value, self.currency),
                "Formula/Notes": "Undiscounted, at end of year " + str(years),
            },
            {
                "Component": "PV(Terminal Value)",
                "Value": format_money(r.pv_terminal_value, self.currency),
                "Formula/Notes": f"Terminal Value / (1+r)^{years}",
            },
            {
                "Component": "= Enterprise Value / Share",
                "Value": format_money(r.enterprise_value_per_share, self.currency),
                "Formula/Notes": "PV(FCF) + PV(TV)",
            },
            {
                "Component": "− Net Debt / Share",
                "Value": format_money(self.inputs.net_debt_per_share, self.currency),
                "Formula/Notes": "User input",
            },
            {
                "Component": "= Intrinsic Value / Share",
                "Value": format_money(r.intrinsic_value_per_share, self.currency),
                "Formula/Notes": "Floored at 0",
            },
        ]

    def format_trace_table(self) -> List[Dict]:
        rows = []
        for step in self.result.trace:
            output = step.output
            if isinstance(output, list):
                output = ", ".join(f"{v:.2f}" for v in output)
            elif isinstance(output, (int, float)):
                output = format_number(output, 4)
            rows.append({
                "Step": step.name,
                "Formula": step.formula or "—",
                "Output": output,
                "Notes": step.notes or "—",
            })
        return rows


def sotp_segment_frame(result: SOTPResult) -> pd.DataFrame:
    """One row per segment with its EV and share of total EV, for the table and pie chart."""
    if not result.applicable:
        return pd.DataFrame(columns=SEGMENT_COLUMNS)
    rows = []
    for segment, share in zip(result.segments, result.contribution_shares()):
        rows.append({
            "name": segment.name,
            "ebitda": segment.ebitda,
            "valuation_multiple": segment.valuation_multiple,
            "ev": segment.ev,
            "share_pct": share,
        })
    return pd.DataFrame(rows, columns=SEGMENT_COLUMNS)


def format_sotp_bridge_table(result: SOTPResult, net_debt: float, total_shares: float,
                             currency: str = "USD") -> List[Dict]:
    if not result.applicable:
        return []
    return [
        {"Component": "Total Enterprise Value", "Value": format_large_money(result.total_ev, currency),
         "Formula/Notes": "Σ EBITDA × multiple"},
        {"Component": "− Net Debt", "Value": format_large_money(net_debt, currency),
         "Formula/Notes": "Absolute"},
        {"Component": "= Equity Value", "Value": format_large_money(result.equity_value, currency),
         "Formula/Notes": "EV − Net Debt"},
        {"Component": "÷ Shares Outstanding", "Value": format_number(total_shares, 0),
         "Formula/Notes": "Fallback of 1 when missing"},
        {"Component": "= Target Price / Share", "Value": format_money(result.target_price_per_share, currency),
         "Formula/Notes": f"Upside {format_pct(result.upside_pct, signed=True)}"},
    ]


def statement_frame(periods: Sequence[StatementPeriod],
                    metrics: List[Tuple[MetricKey, str]]) -> pd.DataFrame:
    """Statement as a metric-by-period table, oldest period first."""
    if not periods:
        return pd.DataFrame()
    data: Dict[str, List[Any]] = {}
    for period in periods:
        data[period.label] = [period.get(key) for key, _ in metrics]
    return pd.DataFrame(data, index=[label for _, label in metrics])
