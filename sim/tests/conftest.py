"""Shared test fixtures for the Collidle economy test suite."""

import sys
from pathlib import Path

import pytest

# Ensure sim/ is on the path so `collidle_sim` imports work
SIM_ROOT = Path(__file__).parent.parent
if str(SIM_ROOT) not in sys.path:
    sys.path.insert(0, str(SIM_ROOT))

from collidle_sim.engine import ProgressionEngine
from collidle_sim.models import GameState, UpgradeKind
from collidle_sim.session import GameConfig


@pytest.fixture
def fresh_state():
    """Brand new game: 1 ag, no upgrades, no echoes."""
    return GameState()


@pytest.fixture
def engine(fresh_state):
    return ProgressionEngine(fresh_state)


@pytest.fixture
def mid_game_state():
    """A few upgrades bought, one echo done."""
    s = GameState(mass=5e-13, echo_points=1, echo_multiplier_level=0,
                  last_save=1_700_000_000_000.0, total_clicks=420,
                  first_echo_unlocked=True)
    s.upgrades[UpgradeKind.IMPACT_FORCE].level = 12
    s.upgrades[UpgradeKind.EMITTER_SPEED].level = 7
    s.upgrades[UpgradeKind.CORE_STABILITY].level = 3
    s.upgrades[UpgradeKind.RADIATION_LEAK].level = 2
    return s


@pytest.fixture
def save_path(tmp_path):
    return tmp_path / "collidle" / "save.yaml"


@pytest.fixture
def game_config(save_path):
    return GameConfig(save_path=save_path, tick_interval=0.01,
                      autosave_interval=30.0, save_debounce=1.0)


class FakeClock:
    """Manually advanced wall clock (seconds)."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()
