"""
Collidle Economy Simulator - Design Constants
===============================================
Central registry of the fixed economy parameters. None of these are meant
to be tuned at runtime; the formulas in econ.py read them directly.
"""

# ---------------------------------------------------------------------------
# Starting values
# ---------------------------------------------------------------------------

STARTING_MASS = 1e-18          # 1 ag
BASE_CLICK_VALUE = 1e-18       # mass per click before any modifiers

# ---------------------------------------------------------------------------
# Upgrade effects (per level)
# ---------------------------------------------------------------------------

IMPACT_FORCE_BONUS = 0.15          # +15% click value
CORE_STABILITY_BONUS = 0.08        # +8% all mass gain
EMITTER_CLICKS_PER_LEVEL = 0.5     # auto-clicks per second
RADIATION_LEAK_GAIN = 1e-17        # flat mass per second

# ---------------------------------------------------------------------------
# Upgrade cost curve
# ---------------------------------------------------------------------------
# cost(kind, level) = BASE_COSTS[kind] * UPGRADE_COST_GROWTH ** level

UPGRADE_COST_GROWTH = 1.15

BASE_COSTS = {
    "impactForce":   1e-17,
    "emitterSpeed":  1e-16,
    "coreStability": 1e-15,
    "radiationLeak": 1e-14,
}

# Upper bound on levels bought by a single request (max-buy included)
MAX_BULK_PURCHASE = 10_000

# ---------------------------------------------------------------------------
# Quantum Echo (prestige)
# ---------------------------------------------------------------------------

ECHO_POWER_BASE = 2.0              # generation x2 per echo point
ECHO_UPGRADE_BASE = 1.1            # x1.1 per echo multiplier level
ECHO_BASE_THRESHOLD = 1e-6         # 1 ug for the first echo
ECHO_THRESHOLD_GROWTH = 10.0       # each echo needs 10x the previous
FIRST_ECHO_UNLOCK_MASS = 1e-6

# ---------------------------------------------------------------------------
# Offline progress
# ---------------------------------------------------------------------------

OFFLINE_EFFICIENCY = 0.5

# ---------------------------------------------------------------------------
# Meteor events
# ---------------------------------------------------------------------------

METEOR_CLICK_MULTIPLIER = 1000     # bonus = 1000 clicks worth of mass
METEOR_PERIOD = 180.0              # seconds between meteors
METEOR_DELAY = 2.0                 # announce -> impact

# ---------------------------------------------------------------------------
# Runtime cadence
# ---------------------------------------------------------------------------

TICK_INTERVAL = 0.1                # passive income timer
AUTOSAVE_INTERVAL = 30.0
SAVE_DEBOUNCE = 1.0                # min gap between on-mutation writes
NOTIFICATION_TTL = 3.0
MAX_PENDING_NOTIFICATIONS = 100   # undrained backlog kept per engine
MAX_CLICKS_PER_REQUEST = 1000

BUY_AMOUNT_PRESETS = ("1", "10", "max")
