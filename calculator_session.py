"""
Calculator sessions: the mutable state behind the DCF sandbox and SOTP table.

One session object per active analysis. Every setter clamps its input to the
control's allowed range, updates only the state it owns, and recomputes the
engine result synchronously. `reset()` restores all snapshot-derived defaults
in one step.
"""

from dataclasses import replace
from typing import Dict, List, Tuple

from data_adapter import SCENARIO_TAGS, FinancialSnapshot, Segment
from dcf_engine import TERMINAL_METHODS, DCFInputs, DCFResult, ScenarioParams, compute_dcf
from sotp_engine import SEGMENT_MULTIPLE_MAX, SEGMENT_MULTIPLE_MIN, SOTPResult, compute_sotp

GROWTH_RATE_RANGE = (-5.0, 40.0)
DISCOUNT_RATE_RANGE = (4.0, 20.0)
TERMINAL_GROWTH_RANGE = (0.0, 6.0)
EXIT_MULTIPLE_RANGE = (5.0, 50.0)
# Upper bound for net debt per share when the price is missing or zero; sliders need lo < hi.
NET_DEBT_RANGE_FLOOR = 1.0
SEGMENT_MULTIPLE_RANGE = (SEGMENT_MULTIPLE_MIN, SEGMENT_MULTIPLE_MAX)

# Scenario offsets relative to the base case
BEAR_DISCOUNT_PREMIUM = 2.0
BEAR_TERMINAL_CUT = 1.5
BEAR_TERMINAL_FLOOR = 1.0
BULL_DISCOUNT_CUT = 1.0
BULL_DISCOUNT_FLOOR = 6.0
BULL_TERMINAL_LIFT = 1.0

EXIT_MULTIPLE_DEFAULTS = {"bear": 10.0, "base": 15.0, "bull": 20.0}


def clamp(value: float, bounds: Tuple[float, float]) -> float:
    lo, hi = bounds
    return max(lo, min(hi, float(value)))


def default_terminal_values(snapshot: FinancialSnapshot, method: str) -> Dict[str, float]:
    """Per-scenario terminal value defaults for `method`."""
    if method == "multiple":
        return dict(EXIT_MULTIPLE_DEFAULTS)
    if method != "growth":
        raise ValueError(f"Unknown terminal method '{method}'. Expected one of {TERMINAL_METHODS}")
    base = snapshot.terminal_rate
    return {
        "bear": max(base - BEAR_TERMINAL_CUT, BEAR_TERMINAL_FLOOR),
        "base": base,
        "bull": base + BULL_TERMINAL_LIFT,
    }


def default_scenarios(snapshot: FinancialSnapshot, method: str = "growth") -> Dict[str, ScenarioParams]:
    """Bear/base/bull parameters derived from the snapshot's base case."""
    terminal = default_terminal_values(snapshot, method)
    return {
        "bear": ScenarioParams(
            growth_rate=snapshot.scenario("bear").growth_rate,
            discount_rate=snapshot.discount_rate + BEAR_DISCOUNT_PREMIUM,
            terminal_val=terminal["bear"],
        ),
        "base": ScenarioParams(
            growth_rate=snapshot.growth_rate,
            discount_rate=snapshot.discount_rate,
            terminal_val=terminal["base"],
        ),
        "bull": ScenarioParams(
            growth_rate=snapshot.scenario("bull").growth_rate,
            discount_rate=max(snapshot.discount_rate - BULL_DISCOUNT_CUT, BULL_DISCOUNT_FLOOR),
            terminal_val=terminal["bull"],
        ),
    }


class DCFCalculatorSession:
    """State of the DCF sandbox for one analysis."""

    def __init__(self, snapshot: FinancialSnapshot):
        self.snapshot = snapshot
        self.result: DCFResult = None
        self.reset()

    def reset(self) -> DCFResult:
        self.active_scenario = "base"
        self.terminal_method = "growth"
        self.use_decay = True
        self.fcf = self.snapshot.fcf_per_share
        self.net_debt_per_share = 0.0
        self.scenarios = default_scenarios(self.snapshot, self.terminal_method)
        return self.recompute()

    @property
    def params(self) -> ScenarioParams:
        return self.scenarios[self.active_scenario]

    @property
    def inputs(self) -> DCFInputs:
        return DCFInputs(
            terminal_method=self.terminal_method,
            use_decay=self.use_decay,
            fcf=self.fcf,
            net_debt_per_share=self.net_debt_per_share,
        )

    @property
    def terminal_range(self) -> Tuple[float, float]:
        return TERMINAL_GROWTH_RANGE if self.terminal_method == "growth" else EXIT_MULTIPLE_RANGE

    @property
    def fcf_range(self) -> Tuple[float, float]:
        return (0.0, max(self.snapshot.fcf_per_share * 3, 20.0))

    @property
    def net_debt_range(self) -> Tuple[float, float]:
        return (0.0, max(self.snapshot.price, NET_DEBT_RANGE_FLOOR))

    def recompute(self) -> DCFResult:
        self.result = compute_dcf(self.snapshot, self.params, self.inputs)
        return self.result

    def select_scenario(self, tag: str) -> DCFResult:
        if tag not in SCENARIO_TAGS:
            raise ValueError(f"Unknown scenario '{tag}'. Expected one of {SCENARIO_TAGS}")
        self.active_scenario = tag
        return self.recompute()

    def set_terminal_method(self, method: str) -> DCFResult:
        """Switch method and re-seed every scenario's terminal value with that method's defaults."""
        if method not in TERMINAL_METHODS:
            raise ValueError(f"Unknown terminal method '{method}'. Expected one of {TERMINAL_METHODS}")
        if method != self.terminal_method:
            self.terminal_method = method
            terminal = default_terminal_values(self.snapshot, method)
            self.scenarios = {
                tag: replace(params, terminal_val=terminal[tag])
                for tag, params in self.scenarios.items()
            }
        return self.recompute()

    def set_use_decay(self, enabled: bool) -> DCFResult:
        self.use_decay = bool(enabled)
        return self.recompute()

    def _update_active(self, **changes) -> DCFResult:
        # Replace rather than mutate so other scenarios never share state.
        self.scenarios = dict(self.scenarios)
        self.scenarios[self.active_scenario] = replace(self.params, **changes)
        return self.recompute()

    def set_growth_rate(self, value: float) -> DCFResult:
        return self._update_active(growth_rate=clamp(value, GROWTH_RATE_RANGE))

    def set_discount_rate(self, value: float) -> DCFResult:
        return self._update_active(discount_rate=clamp(value, DISCOUNT_RATE_RANGE))

    def set_terminal_val(self, value: float) -> DCFResult:
        return self._update_active(terminal_val=clamp(value, self.terminal_range))

    def set_fcf(self, value: float) -> DCFResult:
        self.fcf = clamp(value, self.fcf_range)
        return self.recompute()

    def set_net_debt_per_share(self, value: float) -> DCFResult:
        self.net_debt_per_share = clamp(value, self.net_debt_range)
        return self.recompute()


class SOTPCalculatorSession:
    """State of the SOTP table for one analysis. Works on a private copy of the segments."""

    def __init__(self, snapshot: FinancialSnapshot):
        self.snapshot = snapshot
        self.result: SOTPResult = None
        self.reset()

    def reset(self) -> SOTPResult:
        self.segments: List[Segment] = list(self.snapshot.segments)
        self.net_debt = self.snapshot.net_debt
        self.total_shares = self.snapshot.total_shares
        return self.recompute()

    def recompute(self) -> SOTPResult:
        self.result = compute_sotp(self.segments, self.net_debt, self.total_shares, self.snapshot.price)
        return self.result

    def set_segment_multiple(self, index: int, multiple: float) -> SOTPResult:
        if not 0 <= index < len(self.segments):
            raise IndexError(f"Segment index {index} out of range (0..{len(self.segments) - 1})")
        self.segments[index] = replace(
            self.segments[index], valuation_multiple=clamp(multiple, SEGMENT_MULTIPLE_RANGE)
        )
        return self.recompute()

    def set_net_debt(self, value: float) -> SOTPResult:
        self.net_debt = float(value)
        return self.recompute()
