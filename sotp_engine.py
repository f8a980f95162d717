"""
SOTPEngine: Sum-of-the-Parts valuation
======================================
Each business segment is valued on its own EV/EBITDA multiple; the parts sum
to enterprise value, which is bridged to equity value and a per-share target.

A company with no segment data gets a "not applicable" result, which is kept
distinct from a genuine zero valuation.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from data_adapter import DEFAULT_TOTAL_SHARES

SEGMENT_MULTIPLE_MIN = 1.0
SEGMENT_MULTIPLE_MAX = 50.0


@dataclass(frozen=True)
class SegmentValuation:
    name: str
    ebitda: float
    valuation_multiple: float

    @property
    def ev(self) -> float:
        return self.ebitda * self.valuation_multiple

    def to_dict(self):
        return {
            "name": self.name,
            "ebitda": self.ebitda,
            "valuation_multiple": self.valuation_multiple,
            "ev": self.ev,
        }


@dataclass
class SOTPResult:
    applicable: bool
    total_ev: Optional[float] = None
    equity_value: Optional[float] = None
    target_price_per_share: Optional[float] = None
    upside_pct: Optional[float] = None
    segments: List[SegmentValuation] = field(default_factory=list)

    @classmethod
    def not_applicable(cls) -> "SOTPResult":
        return cls(applicable=False)

    @property
    def segment_contributions(self) -> List[float]:
        return [s.ev for s in self.segments]

    def contribution_shares(self) -> List[Optional[float]]:
        """Each segment's share of total EV in percent (None when total EV is zero)."""
        if not self.applicable or not self.total_ev:
            return [None for _ in self.segments]
        return [s.ev / self.total_ev * 100 for s in self.segments]

    @property
    def is_undervalued(self) -> bool:
        return self.upside_pct is not None and self.upside_pct > 0

    def to_dict(self):
        return {
            "applicable": self.applicable,
            "total_ev": self.total_ev,
            "equity_value": self.equity_value,
            "target_price_per_share": self.target_price_per_share,
            "upside_pct": self.upside_pct,
            "segments": [s.to_dict() for s in self.segments],
        }


def safe_share_count(total_shares) -> float:
    """Share count to divide by; missing or non-positive counts fall back to 1."""
    if total_shares is None or total_shares <= 0:
        return DEFAULT_TOTAL_SHARES
    return float(total_shares)


def compute_sotp(segments: Sequence, net_debt: float, total_shares: float,
                 price: Optional[float] = None) -> SOTPResult:
    """
    Value `segments` (anything with name/ebitda/valuation_multiple) and bridge to per-share.

    Args:
        segments: ordered business segments
        net_debt: absolute net debt subtracted from total EV
        total_shares: share count; non-positive falls back to 1
        price: current price, used for the upside/downside percentage

    Returns:
        SOTPResult; `applicable` is False when there are no segments
    """
    if not segments:
        return SOTPResult.not_applicable()

    valuations = [
        SegmentValuation(name=s.name, ebitda=s.ebitda, valuation_multiple=s.valuation_multiple)
        for s in segments
    ]
    total_ev = sum(v.ev for v in valuations)
    equity_value = total_ev - (net_debt or 0.0)
    target_price = equity_value / safe_share_count(total_shares)

    upside = None
    if price is not None and price > 0:
        upside = (target_price - price) / price * 100

    return SOTPResult(
        applicable=True,
        total_ev=total_ev,
        equity_value=equity_value,
        target_price_per_share=target_price,
        upside_pct=upside,
        segments=valuations,
    )
