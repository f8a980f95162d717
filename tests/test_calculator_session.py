"""
Unit tests for the DCF sandbox and SOTP calculator sessions
"""

import pytest
from calculator_session import (
    DCFCalculatorSession, SOTPCalculatorSession, EXIT_MULTIPLE_DEFAULTS,
    default_scenarios, default_terminal_values,
)
from data_adapter import snapshot_from_payload


class TestDefaults:

    def test_scenario_defaults(self, snapshot):
        scenarios = default_scenarios(snapshot)
        assert scenarios["base"].growth_rate == 12.0
        assert scenarios["base"].discount_rate == 10.0
        assert scenarios["base"].terminal_val == 3.0
        assert scenarios["bear"].growth_rate == 6.0
        assert scenarios["bear"].discount_rate == 12.0
        assert scenarios["bear"].terminal_val == pytest.approx(1.5)
        assert scenarios["bull"].growth_rate == 18.0
        assert scenarios["bull"].discount_rate == 9.0
        assert scenarios["bull"].terminal_val == 4.0

    def test_bull_discount_floor_and_bear_terminal_floor(self, build_payload):
        snap = snapshot_from_payload(build_payload(discountRate=6.5, terminalRate=2.0))
        scenarios = default_scenarios(snap)
        assert scenarios["bull"].discount_rate == 6.0
        assert scenarios["bear"].terminal_val == 1.0

    def test_exit_multiple_defaults(self, snapshot):
        assert default_terminal_values(snapshot, "multiple") == EXIT_MULTIPLE_DEFAULTS

    def test_unknown_method(self, snapshot):
        with pytest.raises(ValueError):
            default_terminal_values(snapshot, "dividend")


class TestDCFCalculatorSession:

    def test_initial_state(self, snapshot):
        session = DCFCalculatorSession(snapshot)
        assert session.active_scenario == "base"
        assert session.terminal_method == "growth"
        assert session.use_decay is True
        assert session.fcf == 5.0
        assert session.net_debt_per_share == 0.0
        assert session.result is not None

    def test_edits_touch_only_active_scenario(self, snapshot):
        session = DCFCalculatorSession(snapshot)
        bear_before = session.scenarios["bear"]
        bull_before = session.scenarios["bull"]
        session.set_growth_rate(25)
        session.set_discount_rate(14)
        assert session.scenarios["base"].growth_rate == 25
        assert session.scenarios["bear"] == bear_before
        assert session.scenarios["bull"] == bull_before

    def test_scenario_edits_persist_across_switches(self, snapshot):
        session = DCFCalculatorSession(snapshot)
        session.select_scenario("bull")
        session.set_growth_rate(30)
        session.select_scenario("bear")
        session.select_scenario("bull")
        assert session.params.growth_rate == 30

    def test_result_follows_active_scenario(self, snapshot):
        session = DCFCalculatorSession(snapshot)
        base_value = session.result.intrinsic_value_per_share
        bull_value = session.select_scenario("bull").intrinsic_value_per_share
        bear_value = session.select_scenario("bear").intrinsic_value_per_share
        assert bear_value < base_value < bull_value

    def test_unknown_scenario(self, snapshot):
        with pytest.raises(ValueError):
            DCFCalculatorSession(snapshot).select_scenario("sideways")

    @pytest.mark.parametrize("setter,value,attr,expected", [
        ("set_growth_rate", 99, "growth_rate", 40.0),
        ("set_growth_rate", -20, "growth_rate", -5.0),
        ("set_discount_rate", 1, "discount_rate", 4.0),
        ("set_discount_rate", 35, "discount_rate", 20.0),
        ("set_terminal_val", 9, "terminal_val", 6.0),
        ("set_terminal_val", -1, "terminal_val", 0.0),
    ])
    def test_parameter_clamping(self, snapshot, setter, value, attr, expected):
        session = DCFCalculatorSession(snapshot)
        getattr(session, setter)(value)
        assert getattr(session.params, attr) == expected

    def test_fcf_and_net_debt_clamping(self, snapshot):
        session = DCFCalculatorSession(snapshot)
        session.set_fcf(500)
        assert session.fcf == 20.0  # max(3 × 5, 20)
        session.set_fcf(-3)
        assert session.fcf == 0.0
        session.set_net_debt_per_share(1000)
        assert session.net_debt_per_share == 100.0
        session.set_net_debt_per_share(-1)
        assert session.net_debt_per_share == 0.0

    def test_exit_multiple_range(self, snapshot):
        session = DCFCalculatorSession(snapshot)
        session.set_terminal_method("multiple")
        session.set_terminal_val(80)
        assert session.params.terminal_val == 50.0
        session.set_terminal_val(1)
        assert session.params.terminal_val == 5.0

    def test_method_switch_reseeds_terminal_only(self, snapshot):
        session = DCFCalculatorSession(snapshot)
        session.set_growth_rate(20)
        session.set_terminal_method("multiple")
        assert {tag: p.terminal_val for tag, p in session.scenarios.items()} == EXIT_MULTIPLE_DEFAULTS
        assert session.params.growth_rate == 20
        assert session.scenarios["bear"].discount_rate == 12.0
        session.set_terminal_method("growth")
        assert session.scenarios["base"].terminal_val == 3.0
        assert session.scenarios["bull"].terminal_val == 4.0

    def test_same_method_keeps_edits(self, snapshot):
        session = DCFCalculatorSession(snapshot)
        session.set_terminal_val(5)
        session.set_terminal_method("growth")
        assert session.params.terminal_val == 5

    def test_unknown_method(self, snapshot):
        with pytest.raises(ValueError):
            DCFCalculatorSession(snapshot).set_terminal_method("dividend")

    def test_decay_toggle(self, snapshot):
        session = DCFCalculatorSession(snapshot)
        result = session.set_use_decay(False)
        assert all(p.growth_used == 12.0 for p in result.projections)

    def test_reset_is_bit_identical(self, snapshot):
        fresh = DCFCalculatorSession(snapshot)
        session = DCFCalculatorSession(snapshot)
        session.select_scenario("bull")
        session.set_growth_rate(33.3)
        session.set_terminal_method("multiple")
        session.set_terminal_val(42)
        session.set_use_decay(False)
        session.set_fcf(17)
        session.set_net_debt_per_share(25)
        session.reset()
        assert session.scenarios == fresh.scenarios
        assert session.inputs == fresh.inputs
        assert session.active_scenario == fresh.active_scenario
        assert session.result.intrinsic_value_per_share == fresh.result.intrinsic_value_per_share
        assert session.result.to_dict() == fresh.result.to_dict()


class TestSOTPCalculatorSession:

    def test_initial_result(self, snapshot):
        session = SOTPCalculatorSession(snapshot)
        assert session.result.total_ev == pytest.approx(2000)
        assert session.result.target_price_per_share == pytest.approx(18.0)

    def test_multiple_edit_does_not_touch_snapshot(self, snapshot):
        session = SOTPCalculatorSession(snapshot)
        session.set_segment_multiple(0, 15)
        assert session.result.total_ev == pytest.approx(2500)
        assert snapshot.segments[0].valuation_multiple == 10

    def test_multiple_clamped(self, snapshot):
        session = SOTPCalculatorSession(snapshot)
        session.set_segment_multiple(1, 75)
        assert session.segments[1].valuation_multiple == 50.0
        session.set_segment_multiple(1, 0)
        assert session.segments[1].valuation_multiple == 1.0

    def test_segment_index_out_of_range(self, snapshot):
        with pytest.raises(IndexError):
            SOTPCalculatorSession(snapshot).set_segment_multiple(5, 10)

    def test_net_debt(self, snapshot):
        session = SOTPCalculatorSession(snapshot)
        session.set_net_debt(0)
        assert session.result.target_price_per_share == pytest.approx(20.0)

    def test_reset_restores_snapshot_values(self, snapshot):
        fresh = SOTPCalculatorSession(snapshot)
        session = SOTPCalculatorSession(snapshot)
        session.set_segment_multiple(0, 30)
        session.set_net_debt(-500)
        session.reset()
        assert session.segments == list(snapshot.segments)
        assert session.net_debt == 200
        assert session.result == fresh.result

    def test_no_segments_not_applicable(self, build_payload):
        snap = snapshot_from_payload(build_payload(segments=[]))
        session = SOTPCalculatorSession(snap)
        assert not session.result.applicable


class TestMissingPrice:

    @pytest.mark.parametrize("price", [None, 0, "n/a"])
    def test_net_debt_range_stays_open(self, build_payload, price):
        session = DCFCalculatorSession(snapshot_from_payload(build_payload(price=price)))
        lo, hi = session.net_debt_range
        assert lo < hi
        session.set_net_debt_per_share(0.5)
        assert session.net_debt_per_share == 0.5
        assert session.result.margin_of_safety_pct is None
