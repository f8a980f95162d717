"""
Valuation insights: premium/discount classification and ratio colour bands.

Every classic fair-value model (Graham Number, Graham Growth Value, Lynch Fair
Value, Buffett Ten-Cap) goes through the same `classify` function.
"""

from dataclasses import dataclass
from typing import List, Optional

GOOD = "good"
NEUTRAL = "neutral"
BAD = "bad"

THRESHOLDS = {
    "fscore_strong": 7,
    "fscore_average": 4,
    "ev_ebitda_cheap": 10.0,
    "ev_ebitda_fair": 20.0,
    "debt_to_equity_max": 1.0,
    "interest_coverage_safe": 5.0,
    "pe_premium": 25.0,
    "pe_value": 15.0,
    "peg_undervalued": 1.0,
    "owner_yield_high": 8.0,
    "owner_yield_mid": 4.0,
    "owner_yield_attractive": 5.0,
}


@dataclass(frozen=True)
class ValuationInsight:
    percent_difference: Optional[float]
    is_undervalued: bool
    label: str  # "Discount" or "Premium"

    def to_dict(self):
        return {
            "percent_difference": self.percent_difference,
            "is_undervalued": self.is_undervalued,
            "label": self.label,
        }


@dataclass(frozen=True)
class Rating:
    tone: str  # good / neutral / bad
    caption: str = ""


@dataclass(frozen=True)
class ModelValuation:
    """A classic fair-value model evaluated against the current price."""
    key: str
    title: str
    value: Optional[float]
    insight: Optional[ValuationInsight]


def classify(model_value: float, current_price: float) -> ValuationInsight:
    """
    Compare a model's fair value with the market price.

    percent_difference = |price − model| / model × 100, or None when the model
    value is not positive (the ratio has no meaning there).
    """
    is_undervalued = model_value is not None and current_price < model_value
    if model_value is None or model_value <= 0:
        diff = None
    else:
        diff = abs(current_price - model_value) / model_value * 100
    return ValuationInsight(
        percent_difference=diff,
        is_undervalued=is_undervalued,
        label="Discount" if is_undervalued else "Premium",
    )


def lynch_fair_value(eps: Optional[float], revenue_growth: Optional[float]) -> Optional[float]:
    """Peter Lynch: fair P/E equals the growth rate, so fair value = EPS × growth."""
    if eps is None or revenue_growth is None:
        return None
    return eps * revenue_growth


def classic_models(snapshot) -> List[ModelValuation]:
    """Graham Number, Graham Growth, Lynch and Ten-Cap values classified against price."""
    candidates = [
        ("graham_number", "Graham Number", snapshot.graham_number),
        ("graham_growth", "Graham Growth Value", snapshot.graham_growth_value),
        ("lynch", "Lynch Fair Value", lynch_fair_value(snapshot.eps, snapshot.revenue_growth)),
        ("ten_cap", "Buffett Ten-Cap Price", snapshot.buffett_ten_cap_price),
    ]
    models = []
    for key, title, value in candidates:
        insight = classify(value, snapshot.price) if value is not None else None
        models.append(ModelValuation(key=key, title=title, value=value, insight=insight))
    return models


def fscore_rating(score: Optional[float]) -> Rating:
    if score is None:
        return Rating(NEUTRAL, "Not available")
    if score >= THRESHOLDS["fscore_strong"]:
        return Rating(GOOD, "Strong fundamentals")
    if score >= THRESHOLDS["fscore_average"]:
        return Rating(NEUTRAL, "Average")
    return Rating(BAD, "Weak fundamentals")


def ev_ebitda_rating(ratio: Optional[float]) -> Rating:
    if ratio is None:
        return Rating(NEUTRAL, "Not available")
    if ratio < THRESHOLDS["ev_ebitda_cheap"]:
        return Rating(GOOD, "Cheap")
    if ratio < THRESHOLDS["ev_ebitda_fair"]:
        return Rating(NEUTRAL, "Fair")
    return Rating(BAD, "Expensive")


def leverage_rating(debt_to_equity: Optional[float]) -> Rating:
    if debt_to_equity is None:
        return Rating(NEUTRAL, "Not available")
    if debt_to_equity < THRESHOLDS["debt_to_equity_max"]:
        return Rating(GOOD, "Healthy Balance Sheet")
    return Rating(BAD, "High Leverage")


def interest_coverage_rating(coverage: Optional[float]) -> Rating:
    if coverage is None:
        return Rating(NEUTRAL, "Not available")
    if coverage > THRESHOLDS["interest_coverage_safe"]:
        return Rating(GOOD, "Safe")
    return Rating(BAD, "Risky")


def pe_rating(pe: Optional[float]) -> Rating:
    if pe is None:
        return Rating(NEUTRAL, "Not available")
    if pe > THRESHOLDS["pe_premium"]:
        return Rating(BAD, "Premium Valuation")
    if pe < THRESHOLDS["pe_value"]:
        return Rating(GOOD, "Potential Value")
    return Rating(NEUTRAL, "Fair Value")


def relative_pe_rating(pe: Optional[float], industry_pe: Optional[float]) -> Rating:
    if pe is None or industry_pe is None:
        return Rating(NEUTRAL, "Not available")
    if pe < industry_pe:
        return Rating(GOOD, "Cheaper than peers")
    return Rating(BAD, "Premium to peers")


def peg_rating(peg: Optional[float]) -> Rating:
    if peg is None:
        return Rating(NEUTRAL, "Not available")
    if peg < THRESHOLDS["peg_undervalued"]:
        return Rating(GOOD, "Undervalued (<1.0)")
    return Rating(NEUTRAL, "Fair/Overvalued")


def owner_earnings_yield(owner_eps: Optional[float], price: float) -> Optional[float]:
    """Owner earnings per share as a percentage of price."""
    if owner_eps is None or price is None or price <= 0:
        return None
    return owner_eps / price * 100


def owner_yield_rating(yield_pct: Optional[float]) -> Rating:
    if yield_pct is None:
        return Rating(NEUTRAL, "Not available")
    caption = "Attractive" if yield_pct > THRESHOLDS["owner_yield_attractive"] else "Below benchmark"
    if yield_pct > THRESHOLDS["owner_yield_high"]:
        return Rating(GOOD, caption)
    if yield_pct > THRESHOLDS["owner_yield_mid"]:
        return Rating(NEUTRAL, caption)
    return Rating(BAD, caption)


def value_creation_spread(roic: Optional[float], wacc: Optional[float]) -> Optional[float]:
    if roic is None or wacc is None:
        return None
    return roic - wacc


def value_creation_rating(spread: Optional[float]) -> Rating:
    if spread is None:
        return Rating(NEUTRAL, "Not available")
    if spread > 0:
        return Rating(GOOD, "Creating Value")
    return Rating(BAD, "Destroying Value")


def get_valuation_verdict(upside_pct: Optional[float]) -> Rating:
    """Map upside/downside of a model value vs market to a verdict."""
    if upside_pct is None:
        return Rating(NEUTRAL, "Not available")
    if upside_pct > 25:
        return Rating(GOOD, "Significantly Undervalued")
    if upside_pct > 10:
        return Rating(GOOD, "Modestly Undervalued")
    if upside_pct < -25:
        return Rating(BAD, "Significantly Overvalued")
    if upside_pct < -10:
        return Rating(BAD, "Modestly Overvalued")
    return Rating(NEUTRAL, "Fairly Valued")
