"""
Collidle Economy Simulator - Economy Model
============================================
Upgrade catalog and the derived-value formulas. Every function here is a pure
function of GameState (or of a kind + level); nothing mutates.
"""

from dataclasses import dataclass
from typing import Tuple
import math

from collidle_sim.constants import (
    BASE_CLICK_VALUE, IMPACT_FORCE_BONUS, CORE_STABILITY_BONUS,
    EMITTER_CLICKS_PER_LEVEL, RADIATION_LEAK_GAIN,
    UPGRADE_COST_GROWTH, MAX_BULK_PURCHASE,
    ECHO_POWER_BASE, ECHO_UPGRADE_BASE,
    ECHO_BASE_THRESHOLD, ECHO_THRESHOLD_GROWTH,
)
from collidle_sim.models import (
    GameState, UpgradeKind, PurchaseAmount, BuyMax, safe_pow,
)


# =============================================================================
# UPGRADE CATALOG
# =============================================================================

@dataclass
class Upgrade:
    name: str
    base_cost: float
    effect: str


UPGRADES = {
    UpgradeKind.IMPACT_FORCE: Upgrade(
        name="Impact Force",
        base_cost=UpgradeKind.IMPACT_FORCE.base_cost,
        effect=f"+{IMPACT_FORCE_BONUS * 100:.0f}% mass per click",
    ),
    UpgradeKind.EMITTER_SPEED: Upgrade(
        name="Emitter Speed",
        base_cost=UpgradeKind.EMITTER_SPEED.base_cost,
        effect=f"+{EMITTER_CLICKS_PER_LEVEL} particles/sec",
    ),
    UpgradeKind.CORE_STABILITY: Upgrade(
        name="Core Stability",
        base_cost=UpgradeKind.CORE_STABILITY.base_cost,
        effect=f"+{CORE_STABILITY_BONUS * 100:.0f}% all mass gain",
    ),
    UpgradeKind.RADIATION_LEAK: Upgrade(
        name="Radiation Leak",
        base_cost=UpgradeKind.RADIATION_LEAK.base_cost,
        effect="+10.0 ag/sec passive",
    ),
}


def resolve_kind(key) -> UpgradeKind:
    """Look up an upgrade kind by value ("impactForce") or enum name.

    Raises ValueError for unknown keys; callers at the input boundary decide
    whether that is a no-op or a rejected request.
    """
    if isinstance(key, UpgradeKind):
        return key
    try:
        return UpgradeKind(key)
    except ValueError:
        pass
    normalized = str(key).strip().upper().replace("-", "_")
    if normalized in UpgradeKind.__members__:
        return UpgradeKind[normalized]
    compact = normalized.replace("_", "")
    for kind in UpgradeKind:
        if kind.value.upper() == compact:
            return kind
    raise ValueError(f"Unknown upgrade: {key}. Choose from: {[k.value for k in UpgradeKind]}")


# =============================================================================
# CLICK & PASSIVE GENERATION
# =============================================================================

def base_click_value(state: GameState) -> float:
    return BASE_CLICK_VALUE * (1 + state.level(UpgradeKind.IMPACT_FORCE) * IMPACT_FORCE_BONUS)


def mass_multiplier(state: GameState) -> float:
    return 1 + state.level(UpgradeKind.CORE_STABILITY) * CORE_STABILITY_BONUS


def echo_power_factor(state: GameState) -> float:
    return safe_pow(ECHO_POWER_BASE, state.echo_points)


def echo_upgrade_factor(state: GameState) -> float:
    return safe_pow(ECHO_UPGRADE_BASE, state.echo_multiplier_level)


def mass_per_click(state: GameState) -> float:
    return (base_click_value(state) * mass_multiplier(state)
            * echo_power_factor(state) * echo_upgrade_factor(state))


def auto_clicks_per_second(state: GameState) -> float:
    return state.level(UpgradeKind.EMITTER_SPEED) * EMITTER_CLICKS_PER_LEVEL


def passive_flat_gain(state: GameState) -> float:
    return state.level(UpgradeKind.RADIATION_LEAK) * RADIATION_LEAK_GAIN


def mass_per_second(state: GameState) -> float:
    auto = auto_clicks_per_second(state) * base_click_value(state) * mass_multiplier(state)
    return (auto + passive_flat_gain(state)) * echo_power_factor(state) * echo_upgrade_factor(state)


# =============================================================================
# UPGRADE COSTS
# =============================================================================

def upgrade_cost(kind: UpgradeKind, level: int) -> float:
    """Cost of buying `level` -> `level + 1`."""
    return kind.base_cost * safe_pow(UPGRADE_COST_GROWTH, level)


def bulk_upgrade_cost(kind: UpgradeKind, level: int, amount: int) -> float:
    """Sum of the next `amount` level costs, added in purchase order."""
    total = 0.0
    for i in range(max(0, amount)):
        total += upgrade_cost(kind, level + i)
    return total


def _geometric_estimate(kind: UpgradeKind, level: int, mass: float) -> int:
    """Closed-form inverse of the geometric cost series.

    Solves base * g^L * (g^n - 1) / (g - 1) <= mass for n. Only used to bound
    the exact walk in max_affordable, so float slop of a level is fine.
    """
    first = upgrade_cost(kind, level)
    if not math.isfinite(first) or first <= 0:
        return 0
    growth = UPGRADE_COST_GROWTH
    ratio = mass * (growth - 1) / first
    if not math.isfinite(ratio):
        return MAX_BULK_PURCHASE
    n = math.floor(math.log1p(ratio) / math.log(growth))
    return max(0, min(int(n), MAX_BULK_PURCHASE))


def max_affordable(kind: UpgradeKind, level: int, mass: float) -> Tuple[int, float]:
    """Largest amount whose summed cost fits in `mass`, and that cost.

    Buying the cheapest next level first is always optimal because a kind's
    costs only grow, so the greedy walk gives the maximum. The walk is bounded
    by the closed-form estimate and MAX_BULK_PURCHASE.
    """
    if not mass > 0:
        return 0, 0.0
    limit = min(_geometric_estimate(kind, level, mass) + 2, MAX_BULK_PURCHASE)
    amount = 0
    total = 0.0
    while amount < limit:
        nxt = total + upgrade_cost(kind, level + amount)
        if nxt > mass:
            break
        total = nxt
        amount += 1
    return amount, total


def resolve_purchase(state: GameState, kind: UpgradeKind,
                     amount: PurchaseAmount) -> Tuple[int, float]:
    """Turn a purchase request into (levels, total cost).

    Returns (0, 0.0) when nothing can be bought.
    """
    level = state.level(kind)
    if isinstance(amount, BuyMax):
        return max_affordable(kind, level, state.mass)
    count = amount.count
    if count <= 0 or count > MAX_BULK_PURCHASE:
        return 0, 0.0
    total = bulk_upgrade_cost(kind, level, count)
    if state.mass >= total:
        return count, total
    return 0, 0.0


def can_afford(state: GameState, kind: UpgradeKind, amount: PurchaseAmount) -> bool:
    """Whether the upgrade button should be enabled. Max-buy checks one level."""
    if isinstance(amount, BuyMax):
        return state.mass >= upgrade_cost(kind, state.level(kind))
    if amount.count <= 0:
        return False
    return state.mass >= bulk_upgrade_cost(kind, state.level(kind), amount.count)


# =============================================================================
# QUANTUM ECHO
# =============================================================================

def echo_threshold(state: GameState) -> float:
    return ECHO_BASE_THRESHOLD * safe_pow(ECHO_THRESHOLD_GROWTH, state.echo_points)


def echo_progress_percent(state: GameState) -> float:
    threshold = echo_threshold(state)
    if not threshold > 0 or math.isinf(threshold):
        return 0.0
    return min(state.mass / threshold * 100, 100.0)


def echo_multiplier_cost(state: GameState) -> int:
    return state.echo_multiplier_level + 1
