"""
Unit tests for DCF engine
"""

import pytest
from dcf_engine import (
    DCFEngine, DCFInputs, ScenarioParams, CalculationTraceStep, ProjectionRow,
    GordonGrowthTerminalValue, ExitMultipleTerminalValue, MULTIPLE_METHOD_DECAY_TARGET,
    compute_dcf, get_terminal_strategy, growth_schedule, margin_of_safety, project_fcf,
)


class TestCalculationTraceStep:
    """Test trace step recording."""

    def test_trace_step_creation(self):
        step = CalculationTraceStep(
            name="Test Step",
            formula="x + y",
            inputs={"x": 10, "y": 20},
            output=30
        )
        assert step.name == "Test Step"
        assert step.output == 30

    def test_trace_step_to_dict(self):
        step = CalculationTraceStep("Test", "x+y", {"x": 1}, 2)
        d = step.to_dict()
        assert d["name"] == "Test"
        assert d["formula"] == "x+y"
        assert d["notes"] == ""


class TestGrowthSchedule:
    """Test the per-year growth rates."""

    def test_flat_when_decay_disabled(self):
        rates = growth_schedule(12.0, 3.0, use_decay=False)
        assert rates == [12.0] * 10

    def test_decay_reaches_target_in_final_year(self):
        rates = growth_schedule(12.0, 3.0, use_decay=True)
        assert rates[0] == pytest.approx(12.0)
        assert rates[-1] == pytest.approx(3.0)
        assert len(rates) == 10

    def test_decay_is_non_increasing(self):
        rates = growth_schedule(25.0, 4.0, use_decay=True)
        assert all(a >= b for a, b in zip(rates, rates[1:]))

    def test_decay_floors_at_zero(self):
        # Target below zero: growth is floored rather than turning negative
        rates = growth_schedule(2.0, -5.0, use_decay=True)
        assert min(rates) >= 0.0
        assert rates[-1] == 0.0

    def test_negative_growth_floored_with_decay(self):
        rates = growth_schedule(-4.0, 3.0, use_decay=True)
        assert rates[0] == 0.0

    def test_single_year_horizon(self):
        assert growth_schedule(10.0, 3.0, use_decay=True, years=1) == [10.0]


class TestProjection:
    """Test compounding and discounting."""

    def test_project_fcf_compounds_and_discounts(self):
        rows = project_fcf(100.0, [10.0, 10.0], 10.0)
        assert rows[0].fcf == pytest.approx(110.0)
        assert rows[0].discounted == pytest.approx(100.0)
        assert rows[1].fcf == pytest.approx(121.0)
        assert rows[1].discounted == pytest.approx(100.0)

    def test_row_labels(self):
        row = ProjectionRow(year=3, growth_used=5.0, fcf=1.0, discounted=0.9)
        assert row.label == "Y3"
        assert row.to_dict()["year"] == "Y3"

    def test_zero_fcf_projects_zero(self):
        result = DCFEngine(100.0, ScenarioParams(12, 10, 3), DCFInputs(fcf=0.0)).run()
        assert all(p.fcf == 0 for p in result.projections)
        assert result.intrinsic_value_per_share == 0.0


class TestTerminalValue:
    """Test terminal value strategies."""

    def test_gordon_growth_reference_value(self):
        strategy = GordonGrowthTerminalValue()
        trace, warnings = [], []
        tv = strategy.terminal_value(100.0, ScenarioParams(12, 10, 3), trace, warnings)
        assert tv == pytest.approx(1471.43, abs=0.01)
        assert trace[0].inputs["denominator"] == pytest.approx(0.07)
        assert warnings == []

    def test_gordon_growth_denominator_floor(self):
        strategy = GordonGrowthTerminalValue()
        warnings = []
        tv = strategy.terminal_value(100.0, ScenarioParams(12, 5, 5), [], warnings)
        assert tv == pytest.approx(100.0 * 1.05 / 0.001)
        assert len(warnings) == 1

    def test_exit_multiple(self):
        strategy = ExitMultipleTerminalValue()
        tv = strategy.terminal_value(100.0, ScenarioParams(12, 10, 15), [], [])
        assert tv == pytest.approx(1500.0)

    def test_decay_targets(self):
        params = ScenarioParams(12, 10, 4.5)
        assert GordonGrowthTerminalValue().decay_target(params) == 4.5
        assert ExitMultipleTerminalValue().decay_target(params) == MULTIPLE_METHOD_DECAY_TARGET

    def test_calculate_discounts_terminal_value(self):
        tv, pv = ExitMultipleTerminalValue().calculate(100.0, ScenarioParams(0, 10, 10), 10, [], [])
        assert tv == pytest.approx(1000.0)
        assert pv == pytest.approx(1000.0 / 1.1 ** 10)

    def test_unknown_method_raises(self):
        with pytest.raises(ValueError):
            get_terminal_strategy("perpetuity")


class TestDCFEngine:
    """Test the full valuation."""

    def test_intrinsic_value_components(self):
        result = DCFEngine(50.0, ScenarioParams(10, 10, 3), DCFInputs(fcf=5.0, use_decay=False)).run()
        assert result.enterprise_value_per_share == pytest.approx(result.pv_fcf_sum + result.pv_terminal_value)
        assert result.intrinsic_value_per_share == pytest.approx(result.enterprise_value_per_share)
        assert len(result.projections) == 10
        assert result.terminal_method == "growth"

    def test_net_debt_reduces_value(self):
        params = ScenarioParams(10, 10, 3)
        base = DCFEngine(50.0, params, DCFInputs(fcf=5.0)).run()
        levered = DCFEngine(50.0, params, DCFInputs(fcf=5.0, net_debt_per_share=10.0)).run()
        assert levered.intrinsic_value_per_share == pytest.approx(base.intrinsic_value_per_share - 10.0)

    def test_intrinsic_value_never_negative(self):
        result = DCFEngine(50.0, ScenarioParams(5, 12, 2), DCFInputs(fcf=1.0, net_debt_per_share=1e6)).run()
        assert result.intrinsic_value_per_share == 0.0
        assert any("floored" in w for w in result.warnings)

    @pytest.mark.parametrize("growth", [-5.0, 0.0, 40.0])
    @pytest.mark.parametrize("discount", [4.0, 20.0])
    @pytest.mark.parametrize("method,terminal", [("growth", 6.0), ("multiple", 50.0)])
    def test_intrinsic_value_non_negative_across_ranges(self, growth, discount, method, terminal):
        result = DCFEngine(
            100.0,
            ScenarioParams(growth, discount, terminal),
            DCFInputs(terminal_method=method, fcf=20.0, net_debt_per_share=100.0),
        ).run()
        assert result.intrinsic_value_per_share >= 0

    def test_method_switch_leaves_explicit_phase_unchanged(self):
        growth = DCFEngine(80.0, ScenarioParams(15, 9, 3), DCFInputs(fcf=4.0, use_decay=False)).run()
        multiple = DCFEngine(
            80.0, ScenarioParams(15, 9, 3), DCFInputs(terminal_method="multiple", fcf=4.0, use_decay=False)
        ).run()
        assert multiple.pv_fcf_sum == pytest.approx(growth.pv_fcf_sum)
        assert multiple.terminal_value != pytest.approx(growth.terminal_value)

    def test_method_switch_with_decay_at_gdp_target(self):
        # Gordon terminal 3% and the exit-multiple GDP proxy produce the same decay path
        growth = DCFEngine(80.0, ScenarioParams(15, 9, 3.0), DCFInputs(fcf=4.0)).run()
        multiple = DCFEngine(80.0, ScenarioParams(15, 9, 3.0), DCFInputs(terminal_method="multiple", fcf=4.0)).run()
        assert [p.growth_used for p in multiple.projections] == [p.growth_used for p in growth.projections]
        assert multiple.pv_fcf_sum == pytest.approx(growth.pv_fcf_sum)

    def test_multiple_method_decays_toward_gdp_proxy(self):
        result = DCFEngine(80.0, ScenarioParams(20, 9, 15), DCFInputs(terminal_method="multiple", fcf=4.0)).run()
        assert result.decay_target == MULTIPLE_METHOD_DECAY_TARGET
        assert result.projections[-1].growth_used == pytest.approx(3.0)

    def test_trace_recorded(self):
        result = DCFEngine(50.0, ScenarioParams(10, 10, 3), DCFInputs(fcf=5.0)).run()
        names = [step.name for step in result.trace]
        assert "Growth Schedule" in names
        assert "Terminal Value (Gordon Growth)" in names
        assert names[-1] == "Intrinsic Value per Share"

    def test_to_dict_serialises_projections(self):
        d = DCFEngine(50.0, ScenarioParams(10, 10, 3), DCFInputs(fcf=5.0)).run().to_dict()
        assert d["projections"][0]["year"] == "Y1"
        assert len(d["trace"]) > 0

    def test_compute_dcf_uses_snapshot_price(self, snapshot):
        result = compute_dcf(snapshot, ScenarioParams(12, 10, 3), DCFInputs(fcf=snapshot.fcf_per_share))
        expected = (result.intrinsic_value_per_share - 100) / 100 * 100
        assert result.margin_of_safety_pct == pytest.approx(expected)


class TestMarginOfSafety:

    def test_discount_to_value(self):
        assert margin_of_safety(120.0, 100.0) == pytest.approx(20.0)

    def test_premium_to_value(self):
        assert margin_of_safety(80.0, 100.0) == pytest.approx(-20.0)

    def test_undefined_for_zero_price(self):
        assert margin_of_safety(80.0, 0.0) is None


class TestRepeatedRuns:

    def test_second_run_does_not_touch_first_result(self):
        engine = DCFEngine(50.0, ScenarioParams(5, 12, 2), DCFInputs(fcf=1.0, net_debt_per_share=1e6))
        first = engine.run()
        first_trace, first_warnings = list(first.trace), list(first.warnings)
        second = engine.run()
        assert first.trace == first_trace
        assert first.warnings == first_warnings
        assert len(second.trace) == len(first_trace)
        assert len(second.warnings) == len(first_warnings)
