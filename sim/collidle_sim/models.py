"""
Collidle Economy Simulator - Data Models
==========================================
All dataclasses for the economy engine.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Optional, Union
from enum import Enum

from collidle_sim.constants import (
    BASE_COSTS, STARTING_MASS, UPGRADE_COST_GROWTH, MAX_BULK_PURCHASE,
)


# ---------------------------------------------------------------------------
# Upgrades
# ---------------------------------------------------------------------------

class UpgradeKind(Enum):
    IMPACT_FORCE = "impactForce"
    EMITTER_SPEED = "emitterSpeed"
    CORE_STABILITY = "coreStability"
    RADIATION_LEAK = "radiationLeak"

    @property
    def base_cost(self) -> float:
        return BASE_COSTS[self.value]


def safe_pow(base: float, exponent: float) -> float:
    """Float power that saturates to inf instead of raising OverflowError."""
    try:
        return math.pow(base, exponent)
    except OverflowError:
        return math.inf


@dataclass
class UpgradeState:
    kind: UpgradeKind
    level: int = 0

    @property
    def cost(self) -> float:
        """Cost of the next level. Always derived from level, never stored."""
        return self.kind.base_cost * safe_pow(UPGRADE_COST_GROWTH, self.level)


def default_upgrades() -> Dict[UpgradeKind, UpgradeState]:
    return {kind: UpgradeState(kind=kind) for kind in UpgradeKind}


# ---------------------------------------------------------------------------
# Game state
# ---------------------------------------------------------------------------

@dataclass
class GameState:
    mass: float = STARTING_MASS
    echo_points: int = 0
    echo_multiplier_level: int = 0
    upgrades: Dict[UpgradeKind, UpgradeState] = field(default_factory=default_upgrades)
    last_save: float = 0.0          # epoch milliseconds
    total_clicks: int = 0
    first_echo_unlocked: bool = False

    def level(self, kind: UpgradeKind) -> int:
        return self.upgrades[kind].level

    def reset_upgrades(self):
        self.upgrades = default_upgrades()


# ---------------------------------------------------------------------------
# Purchase amounts
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BuyCount:
    count: int


@dataclass(frozen=True)
class BuyMax:
    pass


PurchaseAmount = Union[BuyCount, BuyMax]


def parse_buy_amount(raw) -> PurchaseAmount:
    """Normalize a user-supplied amount ("1", 10, "max", ...).

    Anything that is not "max" or a positive whole number within
    MAX_BULK_PURCHASE becomes BuyCount(0), which the engine treats as a no-op.
    """
    if isinstance(raw, (BuyCount, BuyMax)):
        return raw
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text == "max":
            return BuyMax()
        try:
            raw = int(text)
        except ValueError:
            return BuyCount(0)
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return BuyCount(0)
    if isinstance(raw, float) and (not math.isfinite(raw) or raw != int(raw)):
        return BuyCount(0)
    count = int(raw)
    if count <= 0 or count > MAX_BULK_PURCHASE:
        return BuyCount(0)
    return BuyCount(count)


# ---------------------------------------------------------------------------
# Events & notifications
# ---------------------------------------------------------------------------

@dataclass
class Notification:
    kind: str                       # "offline_earnings", "echo_unlocked", ...
    message: str
    created_at: float = 0.0         # engine clock, seconds
    amount: Optional[float] = None


@dataclass(order=True)
class ScheduledEvent:
    due: float                      # engine clock, seconds
    seq: int
    kind: str = field(compare=False)
    amount: float = field(default=0.0, compare=False)
