"""Tests for the progression engine."""

import copy
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from collidle_sim import econ
from collidle_sim.constants import MAX_PENDING_NOTIFICATIONS, METEOR_PERIOD
from collidle_sim.engine import ProgressionEngine
from collidle_sim.models import (
    GameState, UpgradeKind, BuyCount, BuyMax, parse_buy_amount,
)


def _kinds(notifications):
    return [n.kind for n in notifications]


def test_click_adds_mass_and_counts(engine):
    gained = engine.click()
    assert gained == pytest.approx(1e-18)
    assert engine.state.mass == pytest.approx(2e-18)
    assert engine.state.total_clicks == 1
    assert engine.dirty


def test_click_then_upgrade_scenario():
    """mass 0 -> click is 1 ag; after one Impact Force it is 1.15 ag."""
    e = ProgressionEngine(GameState(mass=0.0))
    assert e.mass_per_click == pytest.approx(1e-18)

    e.state.mass = 1e-17
    assert e.purchase_upgrade(UpgradeKind.IMPACT_FORCE, BuyCount(1)) == 1
    assert e.state.mass == pytest.approx(0.0, abs=1e-30)
    assert e.state.upgrades[UpgradeKind.IMPACT_FORCE].level == 1
    assert e.state.upgrades[UpgradeKind.IMPACT_FORCE].cost == pytest.approx(1.15e-17)
    assert e.mass_per_click == pytest.approx(1.15e-18)


def test_tick_is_linear_in_delta(mid_game_state):
    """Ten 0.1s ticks equal one 1s tick."""
    a = ProgressionEngine(copy.deepcopy(mid_game_state))
    b = ProgressionEngine(mid_game_state)
    mps = a.mass_per_second
    start = a.state.mass

    for _ in range(10):
        a.tick(0.1)
    b.tick(1.0)
    assert a.state.mass == pytest.approx(b.state.mass)
    assert b.state.mass == pytest.approx(start + mps)


@pytest.mark.parametrize("delta", [0, -5, float("nan"), float("inf")])
def test_tick_ignores_bad_deltas(mid_game_state, delta):
    e = ProgressionEngine(mid_game_state)
    before = e.state.mass
    assert e.tick(delta) == 0.0
    assert e.state.mass == before


def test_purchase_insufficient_is_noop(engine):
    before = engine.state.mass
    assert engine.purchase_upgrade(UpgradeKind.CORE_STABILITY, BuyCount(1)) == 0
    assert engine.state.mass == before
    assert engine.state.upgrades[UpgradeKind.CORE_STABILITY].level == 0
    assert not engine.dirty


def test_purchase_explicit_amount(engine):
    kind = UpgradeKind.EMITTER_SPEED
    total = econ.bulk_upgrade_cost(kind, 0, 10)
    engine.state.mass = total + 1e-18
    assert engine.purchase_upgrade(kind, BuyCount(10)) == 10
    assert engine.state.mass == pytest.approx(1e-18)
    assert engine.state.upgrades[kind].level == 10
    assert engine.state.upgrades[kind].cost == pytest.approx(econ.upgrade_cost(kind, 10))


def test_purchase_explicit_amount_all_or_nothing(engine):
    kind = UpgradeKind.EMITTER_SPEED
    engine.state.mass = econ.bulk_upgrade_cost(kind, 0, 10) * 0.99
    assert engine.purchase_upgrade(kind, BuyCount(10)) == 0
    assert engine.state.upgrades[kind].level == 0


@pytest.mark.parametrize("mass", [2.5e-17, 1e-15, 4.2e-12])
def test_max_buy_never_overspends(mass):
    kind = UpgradeKind.IMPACT_FORCE
    e = ProgressionEngine(GameState(mass=mass))
    bought = e.purchase_upgrade(kind, BuyMax())

    spent = sum(econ.upgrade_cost(kind, i) for i in range(bought))
    assert bought > 0
    assert e.state.mass >= 0
    assert e.state.mass == pytest.approx(mass - spent)
    assert sum(econ.upgrade_cost(kind, i) for i in range(bought + 1)) > mass
    assert e.state.upgrades[kind].level == bought


def test_max_buy_with_nothing_affordable_is_noop(engine):
    assert engine.purchase_upgrade(UpgradeKind.RADIATION_LEAK, BuyMax()) == 0
    assert engine.state.upgrades[UpgradeKind.RADIATION_LEAK].level == 0


@pytest.mark.parametrize("amount", ["-3", "abc", 0, -1, 2.5, None, "1e9", 10_001])
def test_invalid_amounts_are_noops(amount):
    e = ProgressionEngine(GameState(mass=1.0))
    assert e.purchase_upgrade(UpgradeKind.IMPACT_FORCE, amount) == 0
    assert e.state.mass == 1.0


def test_string_amounts_accepted():
    e = ProgressionEngine(GameState(mass=1.0))
    assert e.purchase_upgrade("impactForce", "10") == 10
    assert e.purchase_upgrade("impactForce", "max") > 0


def test_unknown_kind_is_noop(engine):
    engine.state.mass = 1.0
    assert engine.purchase_upgrade("warpDrive", BuyCount(1)) == 0
    assert engine.state.mass == 1.0


def test_parse_buy_amount():
    assert parse_buy_amount("max") == BuyMax()
    assert parse_buy_amount(" MAX ") == BuyMax()
    assert parse_buy_amount("10") == BuyCount(10)
    assert parse_buy_amount(3) == BuyCount(3)
    assert parse_buy_amount(3.0) == BuyCount(3)
    assert parse_buy_amount(True) == BuyCount(0)
    assert parse_buy_amount("-2") == BuyCount(0)


def test_echo_resets_progress(mid_game_state):
    mid_game_state.mass = 2e-5
    e = ProgressionEngine(mid_game_state)
    assert e.perform_echo()

    s = e.state
    assert s.mass == 1e-18
    assert s.echo_points == 2
    for kind in UpgradeKind:
        assert s.upgrades[kind].level == 0
        assert s.upgrades[kind].cost == kind.base_cost
    assert s.total_clicks == 420
    assert s.first_echo_unlocked
    assert "echo_complete" in _kinds(e.drain_notifications())


def test_echo_below_threshold_is_noop(mid_game_state):
    """One echo point means the next echo needs 1e-5."""
    mid_game_state.mass = 9e-6
    e = ProgressionEngine(mid_game_state)
    assert not e.perform_echo()
    assert e.state.echo_points == 1
    assert e.state.mass == 9e-6
    assert e.state.upgrades[UpgradeKind.IMPACT_FORCE].level == 12


def test_echo_multiplier_purchase():
    e = ProgressionEngine(GameState(echo_points=3))
    assert e.purchase_echo_multiplier_level()      # costs 1
    assert e.state.echo_points == 2
    assert e.purchase_echo_multiplier_level()      # costs 2
    assert e.state.echo_points == 0
    assert e.state.echo_multiplier_level == 2
    assert not e.purchase_echo_multiplier_level()  # needs 3
    assert e.state.echo_multiplier_level == 2


def test_first_echo_unlock_latch_is_idempotent():
    e = ProgressionEngine(GameState(mass=1e-6))
    assert e.check_first_echo_unlock()
    assert e.state.first_echo_unlocked
    snapshot = (e.state.mass, e.state.echo_points, e.state.total_clicks)

    for _ in range(5):
        assert not e.check_first_echo_unlock()
    assert e.state.first_echo_unlocked
    assert (e.state.mass, e.state.echo_points, e.state.total_clicks) == snapshot
    assert _kinds(e.drain_notifications()) == ["echo_unlocked"]


def test_unlock_survives_echo():
    e = ProgressionEngine(GameState(mass=2e-6))
    e.check_first_echo_unlock()
    e.perform_echo()
    assert e.state.mass < 1e-6
    assert e.state.first_echo_unlocked


def test_click_triggers_unlock():
    e = ProgressionEngine(GameState(mass=1e-6 - 5e-19))
    e.click()
    assert e.state.first_echo_unlocked


def test_meteor_is_priced_at_trigger_time(engine):
    """Bonus is 1000 clicks at trigger time and lands after the delay."""
    bonus = engine.trigger_meteor_bonus()
    assert bonus == pytest.approx(1000 * 1e-18)
    assert engine.state.mass == pytest.approx(1e-18)

    # Rate changes during the delay do not affect the bonus
    engine.state.mass = 1e-17
    engine.purchase_upgrade(UpgradeKind.IMPACT_FORCE, BuyCount(1))
    mass_after_buy = engine.state.mass

    engine.advance(1.9)
    assert engine.state.mass == mass_after_buy
    engine.advance(0.5)
    assert engine.state.mass == pytest.approx(mass_after_buy + bonus)
    assert _kinds(engine.drain_notifications()) == ["meteor_incoming", "meteor_struck"]
    assert engine.pending_events == []


def test_meteor_timer_fires_every_period(engine):
    engine.advance(179.0)
    assert engine.pending_events == []

    engine.advance(1.0)
    pending = engine.pending_events
    assert len(pending) == 1
    assert pending[0].due == pytest.approx(182.0)

    engine.advance(2.0)
    assert engine.state.mass == pytest.approx(1e-18 + 1000e-18)
    engine.advance(178.0)
    assert len(engine.pending_events) == 1


def test_advance_fires_multiple_meteors_in_order(engine):
    engine.advance(600.0)
    kinds = _kinds(engine.drain_notifications())
    assert kinds.count("meteor_incoming") == 3
    assert kinds.count("meteor_struck") == 3


def test_advance_applies_passive_income(mid_game_state):
    e = ProgressionEngine(mid_game_state)
    mps = e.mass_per_second
    start = e.state.mass
    e.advance(10.0)
    assert e.state.mass == pytest.approx(start + mps * 10.0)
    assert e.clock == 10.0


def test_visible_notifications_expire(engine):
    engine.trigger_meteor_bonus()
    assert len(engine.visible_notifications()) == 1
    engine.advance(2.5)
    assert _kinds(engine.visible_notifications()) == ["meteor_incoming", "meteor_struck"]
    engine.advance(2.6)
    assert engine.visible_notifications() == []


def test_undrained_notifications_are_bounded(engine):
    engine.state.mass = 1.0
    for _ in range(MAX_PENDING_NOTIFICATIONS):
        engine.trigger_meteor_bonus()
    engine.advance(METEOR_PERIOD - 1)
    assert len(engine.notifications) == MAX_PENDING_NOTIFICATIONS
    assert engine.notifications[-1].kind == "meteor_struck"
    assert engine.visible_notifications() == []
