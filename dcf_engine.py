"""
DCFEngine: Scenario-driven per-share DCF with full traceability
================================================================
Implements:
- 10-year explicit projection of free cash flow per share
- Optional linear growth decay from the starting rate toward a long-run target
- Pluggable terminal value strategies (Gordon Growth, Exit Multiple)
- EV -> Equity bridge on a per-share basis, floored at zero
- Calculation trace for every intermediate value

All rates are whole percentages (10.0 means 10%). The engine never raises on
speculative what-if input: degenerate cases are absorbed and reported as
warnings.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict, field
from typing import Dict, List, Optional, Tuple

PROJECTION_YEARS = 10
TERMINAL_METHODS = ("growth", "multiple")

# Long-run growth (GDP proxy) that the exit-multiple method decays toward.
# Decoupled from the exit multiple itself.
MULTIPLE_METHOD_DECAY_TARGET = 3.0

# Floor for (discount - terminal growth) so Gordon Growth stays finite and positive.
MIN_GORDON_DENOMINATOR = 0.001


@dataclass
class ScenarioParams:
    """Slider-controlled assumptions for one scenario (bear/base/bull)."""
    growth_rate: float
    discount_rate: float
    terminal_val: float  # perpetuity growth % or exit EV/FCF multiple, per terminal method

    def to_dict(self):
        return asdict(self)


@dataclass
class DCFInputs:
    """Assumptions shared by every scenario."""
    terminal_method: str = "growth"
    use_decay: bool = True
    fcf: float = 0.0  # starting FCF per share
    net_debt_per_share: float = 0.0
    projection_years: int = PROJECTION_YEARS

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class ProjectionRow:
    """One projected year."""
    year: int
    growth_used: float
    fcf: float
    discounted: float

    @property
    def label(self) -> str:
        return f"Y{self.year}"

    def to_dict(self):
        return {
            "year": self.label,
            "growth_used": self.growth_used,
            "fcf": self.fcf,
            "discounted": self.discounted,
        }


class CalculationTraceStep:
    """Single step in the DCF calculation trace."""
    def __init__(self, name: str, formula: str = None, inputs=None, output=None, notes: str = None):
        self.name = name
        self.formula = formula
        self.inputs = inputs or {}
        self.output = output
        self.notes = notes or ""

    def to_dict(self):
        return {
            "name": self.name,
            "formula": self.formula,
            "inputs": self.inputs,
            "output": self.output,
            "notes": self.notes,
        }


@dataclass
class DCFResult:
    intrinsic_value_per_share: float
    margin_of_safety_pct: Optional[float]
    projections: List[ProjectionRow]
    pv_fcf_sum: float
    terminal_value: float
    pv_terminal_value: float
    enterprise_value_per_share: float
    decay_target: float
    terminal_method: str
    tv_dominance_pct: Optional[float] = None
    warnings: List[str] = field(default_factory=list)
    trace: List[CalculationTraceStep] = field(default_factory=list)

    @property
    def is_undervalued(self) -> bool:
        return self.margin_of_safety_pct is not None and self.margin_of_safety_pct > 0

    def to_dict(self):
        return {
            "intrinsic_value_per_share": self.intrinsic_value_per_share,
            "margin_of_safety_pct": self.margin_of_safety_pct,
            "projections": [p.to_dict() for p in self.projections],
            "pv_fcf_sum": self.pv_fcf_sum,
            "terminal_value": self.terminal_value,
            "pv_terminal_value": self.pv_terminal_value,
            "enterprise_value_per_share": self.enterprise_value_per_share,
            "decay_target": self.decay_target,
            "terminal_method": self.terminal_method,
            "tv_dominance_pct": self.tv_dominance_pct,
            "warnings": list(self.warnings),
            "trace": [s.to_dict() for s in self.trace],
        }


class TerminalValueStrategy(ABC):
    """Abstract base for terminal value calculation strategies."""

    method: str = ""

    @abstractmethod
    def decay_target(self, params: ScenarioParams) -> float:
        """Growth rate the projection decays toward when decay is enabled."""

    @abstractmethod
    def terminal_value(self, final_year_fcf: float, params: ScenarioParams,
                       trace: List[CalculationTraceStep], warnings: List[str]) -> float:
        """Undiscounted terminal value at the end of the projection."""

    def calculate(self, final_year_fcf: float, params: ScenarioParams, years: int,
                  trace: List[CalculationTraceStep], warnings: List[str]) -> Tuple[float, float]:
        """Return (terminal_value_yearN, pv_terminal_value)."""
        terminal_value = self.terminal_value(final_year_fcf, params, trace, warnings)

        discount_factor = (1 + params.discount_rate / 100) ** years
        pv_terminal_value = terminal_value / discount_factor
        trace.append(CalculationTraceStep(
            name="PV of Terminal Value",
            formula=f"Terminal Value / (1 + r)^{years}",
            inputs={
                "terminal_value": terminal_value,
                "discount_rate": params.discount_rate,
                "discount_factor": discount_factor,
            },
            output=pv_terminal_value,
        ))
        return terminal_value, pv_terminal_value


class GordonGrowthTerminalValue(TerminalValueStrategy):
    """Terminal Value = FCF_N × (1 + g) / (r − g)."""

    method = "growth"

    def decay_target(self, params: ScenarioParams) -> float:
        return params.terminal_val

    def terminal_value(self, final_year_fcf: float, params: ScenarioParams,
                       trace: List[CalculationTraceStep], warnings: List[str]) -> float:
        g = params.terminal_val
        r = params.discount_rate
        raw_denominator = (r - g) / 100
        denominator = max(raw_denominator, MIN_GORDON_DENOMINATOR)
        if raw_denominator < MIN_GORDON_DENOMINATOR:
            # Approximation: not an exact treatment of the r == g singularity.
            warnings.append(
                f"Terminal growth ({g:.1f}%) is not below the discount rate ({r:.1f}%); "
                f"denominator floored at {MIN_GORDON_DENOMINATOR}"
            )

        terminal_fcf = final_year_fcf * (1 + g / 100)
        terminal_value = terminal_fcf / denominator
        trace.append(CalculationTraceStep(
            name="Terminal Value (Gordon Growth)",
            formula="FCF_N × (1 + g) / max(r − g, 0.001)",
            inputs={
                "final_year_fcf": final_year_fcf,
                "terminal_growth_rate": g,
                "discount_rate": r,
                "denominator": denominator,
            },
            output=terminal_value,
            notes=f"Assumes perpetual {g:.1f}% growth",
        ))
        return terminal_value


class ExitMultipleTerminalValue(TerminalValueStrategy):
    """Terminal Value = FCF_N × exit EV/FCF multiple."""

    method = "multiple"

    def decay_target(self, params: ScenarioParams) -> float:
        return MULTIPLE_METHOD_DECAY_TARGET

    def terminal_value(self, final_year_fcf: float, params: ScenarioParams,
                       trace: List[CalculationTraceStep], warnings: List[str]) -> float:
        terminal_value = final_year_fcf * params.terminal_val
        trace.append(CalculationTraceStep(
            name="Terminal Value (Exit Multiple)",
            formula="FCF_N × exit multiple",
            inputs={
                "final_year_fcf": final_year_fcf,
                "exit_multiple": params.terminal_val,
            },
            output=terminal_value,
            notes=f"Exit multiple = {params.terminal_val:.1f}x EV/FCF",
        ))
        return terminal_value


TERMINAL_VALUE_STRATEGIES: Dict[str, TerminalValueStrategy] = {
    "growth": GordonGrowthTerminalValue(),
    "multiple": ExitMultipleTerminalValue(),
}


def get_terminal_strategy(method: str) -> TerminalValueStrategy:
    try:
        return TERMINAL_VALUE_STRATEGIES[method]
    except KeyError:
        raise ValueError(f"Unknown terminal method '{method}'. Expected one of {TERMINAL_METHODS}") from None


def growth_schedule(growth_rate: float, decay_target: float, use_decay: bool,
                    years: int = PROJECTION_YEARS) -> List[float]:
    """
    Per-year growth rates for the explicit forecast.

    With decay, growth moves linearly from `growth_rate` (year 1) to
    `decay_target` (year N), never below 0. Without decay every year uses
    `growth_rate`.
    """
    if not use_decay:
        return [growth_rate] * years
    step = (growth_rate - decay_target) / max(years - 1, 1)
    return [max(growth_rate - step * (i - 1), 0.0) for i in range(1, years + 1)]


def project_fcf(fcf: float, growth_rates: List[float], discount_rate: float) -> List[ProjectionRow]:
    """Compound FCF through `growth_rates` and discount each year at `discount_rate`."""
    rows = []
    current_fcf = fcf
    for year, g in enumerate(growth_rates, start=1):
        current_fcf = current_fcf * (1 + g / 100)
        discounted = current_fcf / (1 + discount_rate / 100) ** year
        rows.append(ProjectionRow(year=year, growth_used=g, fcf=current_fcf, discounted=discounted))
    return rows


def margin_of_safety(intrinsic_value: float, price: float) -> Optional[float]:
    """(IV − price) / price × 100; undefined for a non-positive price."""
    if price is None or price <= 0:
        return None
    return (intrinsic_value - price) / price * 100


class DCFEngine:
    """Per-share DCF for one scenario."""

    def __init__(self, price: float, params: ScenarioParams, inputs: DCFInputs):
        self.price = price
        self.params = params
        self.inputs = inputs
        self.trace = []
        self.warnings = []

    def run(self) -> DCFResult:
        """Execute the valuation and return results + trace."""
        self.trace = []
        self.warnings = []
        params, inputs = self.params, self.inputs
        strategy = get_terminal_strategy(inputs.terminal_method)
        years = inputs.projection_years

        # Stage 1: growth phase
        target = strategy.decay_target(params)
        rates = growth_schedule(params.growth_rate, target, inputs.use_decay, years)
        self.trace.append(CalculationTraceStep(
            name="Growth Schedule",
            formula="max(g − step × (i − 1), 0)" if inputs.use_decay else "g (flat)",
            inputs={
                "growth_rate": params.growth_rate,
                "decay_target": target,
                "use_decay": inputs.use_decay,
                "years": years,
            },
            output=rates,
        ))

        projections = project_fcf(inputs.fcf, rates, params.discount_rate)
        pv_fcf_sum = sum(p.discounted for p in projections)
        self.trace.append(CalculationTraceStep(
            name="PV of Explicit FCF",
            formula=f"Σ FCF_t / (1 + r)^t for t=1..{years}",
            inputs={"starting_fcf": inputs.fcf, "discount_rate": params.discount_rate},
            output=pv_fcf_sum,
        ))

        # Stage 2: terminal value
        final_year_fcf = projections[-1].fcf if projections else inputs.fcf
        terminal_value, pv_terminal_value = strategy.calculate(
            final_year_fcf, params, years, self.trace, self.warnings
        )

        enterprise_value = pv_fcf_sum + pv_terminal_value
        tv_dominance = (pv_terminal_value / enterprise_value * 100) if enterprise_value > 0 else None
        self.trace.append(CalculationTraceStep(
            name="Enterprise Value per Share",
            formula="Σ PV(FCF) + PV(Terminal Value)",
            inputs={"pv_fcf_sum": pv_fcf_sum, "pv_terminal_value": pv_terminal_value},
            output=enterprise_value,
            notes=f"TV dominance: {tv_dominance:.1f}% of EV" if tv_dominance is not None else "",
        ))

        # EV -> Equity bridge
        equity_value = enterprise_value - inputs.net_debt_per_share
        if equity_value < 0:
            self.warnings.append("Net debt per share exceeds enterprise value; intrinsic value floored at 0")
        intrinsic_value = max(equity_value, 0.0)
        self.trace.append(CalculationTraceStep(
            name="Intrinsic Value per Share",
            formula="max(EV per share − Net Debt per share, 0)",
            inputs={
                "enterprise_value_per_share": enterprise_value,
                "net_debt_per_share": inputs.net_debt_per_share,
            },
            output=intrinsic_value,
        ))

        return DCFResult(
            intrinsic_value_per_share=intrinsic_value,
            margin_of_safety_pct=margin_of_safety(intrinsic_value, self.price),
            projections=projections,
            pv_fcf_sum=pv_fcf_sum,
            terminal_value=terminal_value,
            pv_terminal_value=pv_terminal_value,
            enterprise_value_per_share=enterprise_value,
            decay_target=target,
            terminal_method=strategy.method,
            tv_dominance_pct=tv_dominance,
            warnings=self.warnings,
            trace=self.trace,
        )


def compute_dcf(snapshot, params: ScenarioParams, inputs: DCFInputs) -> DCFResult:
    """Value one scenario of `snapshot` under the given assumptions."""
    return DCFEngine(snapshot.price, params, inputs).run()
