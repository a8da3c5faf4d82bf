"""
Collidle Economy Simulator - Save / Load
==========================================
Serialize GameState to YAML and reconcile a saved game with the time that
passed while nobody was playing.
"""

import math
import os
import tempfile
import time
import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from collidle_sim import econ
from collidle_sim.constants import OFFLINE_EFFICIENCY
from collidle_sim.format import fmt_mass
from collidle_sim.models import GameState, Notification, UpgradeKind, default_upgrades


def now_ms() -> float:
    """Wall clock in epoch milliseconds."""
    return time.time() * 1000.0


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def state_to_dict(state: GameState) -> dict:
    return {
        "mass": state.mass,
        "echoPoints": state.echo_points,
        "upgrades": {
            kind.value: {"level": up.level, "cost": up.cost}
            for kind, up in state.upgrades.items()
        },
        "echoMultiplierLevel": state.echo_multiplier_level,
        "lastSave": state.last_save,
        "totalClicks": state.total_clicks,
        "firstEchoUnlocked": state.first_echo_unlocked,
    }


def dump_state(state: GameState) -> str:
    return yaml.safe_dump(state_to_dict(state), default_flow_style=False, sort_keys=False)


def save_game(state: GameState, filepath, now: Optional[float] = None):
    """Stamp last_save and write the state, replacing the file atomically."""
    state.last_save = now_ms() if now is None else now
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmppath = tempfile.mkstemp(prefix=path.name, suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(dump_state(state))
        os.replace(tmppath, path)
    finally:
        if os.path.exists(tmppath):
            os.unlink(tmppath)


# ---------------------------------------------------------------------------
# Field coercion (bad values fall back to defaults)
# ---------------------------------------------------------------------------

def _as_number(value) -> Optional[float]:
    # YAML 1.1 reads JSON-style exponents like "1e-18" as strings
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return None
    try:
        return float(value)
    except (ValueError, OverflowError):
        return None


def _as_float(value, default: float) -> float:
    value = _as_number(value)
    if value is None or not math.isfinite(value) or value < 0:
        return default
    return value


def _as_count(value, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, float) and math.isfinite(value) and value == int(value):
        value = int(value)
    if not isinstance(value, int) or value < 0:
        return default
    # levels feed float formulas; ints past float range are corrupt
    if _as_number(value) is None:
        return default
    return value


def _as_bool(value, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def _as_timestamp(value, default: float) -> float:
    value = _as_number(value)
    if value is None or not math.isfinite(value):
        return default
    return value


def state_from_dict(data: dict, now: float) -> GameState:
    """Merge saved fields over defaults. Unknown keys are ignored."""
    d = GameState(last_save=now)
    state = GameState(
        mass=_as_float(data.get("mass"), d.mass),
        echo_points=_as_count(data.get("echoPoints"), d.echo_points),
        echo_multiplier_level=_as_count(data.get("echoMultiplierLevel"),
                                        d.echo_multiplier_level),
        upgrades=default_upgrades(),
        last_save=_as_timestamp(data.get("lastSave"), d.last_save),
        total_clicks=_as_count(data.get("totalClicks"), d.total_clicks),
        first_echo_unlocked=_as_bool(data.get("firstEchoUnlocked"), d.first_echo_unlocked),
    )

    saved_upgrades = data.get("upgrades")
    if isinstance(saved_upgrades, dict):
        for kind in UpgradeKind:
            entry = saved_upgrades.get(kind.value)
            if isinstance(entry, dict):
                # cost is derived from level; the saved value is not trusted
                state.upgrades[kind].level = _as_count(entry.get("level"), 0)
    return state


# ---------------------------------------------------------------------------
# Offline reconciliation
# ---------------------------------------------------------------------------

@dataclass
class ReconcileResult:
    state: GameState
    offline_gain: float = 0.0
    elapsed_seconds: float = 0.0
    notification: Optional[Notification] = None
    error: Optional[str] = None


def load_and_reconcile(raw: Optional[str], now: float) -> ReconcileResult:
    """Restore a saved game and credit offline production.

    Never raises on bad input: absent or unparsable data yields a fresh
    default state with no offline bonus, and `error` says why.
    """
    if raw is None or not str(raw).strip():
        return ReconcileResult(state=GameState(last_save=now))

    try:
        data = yaml.safe_load(raw)
        if not isinstance(data, dict):
            return ReconcileResult(state=GameState(last_save=now),
                                   error="save data is not a mapping")
        state = state_from_dict(data, now)
        elapsed = max(0.0, (now - state.last_save) / 1000.0)
        gain = econ.mass_per_second(state) * elapsed * OFFLINE_EFFICIENCY
    except (yaml.YAMLError, RecursionError, ValueError, OverflowError, TypeError) as e:
        return ReconcileResult(state=GameState(last_save=now), error=f"unparsable save: {e}")
    if not math.isfinite(gain) or gain < 0:
        gain = 0.0

    state.mass += gain
    state.last_save = now

    notification = None
    if gain > 0:
        notification = Notification(
            kind="offline_earnings",
            message=f"While you were away, you earned {fmt_mass(gain)}",
            amount=gain,
        )
    return ReconcileResult(state=state, offline_gain=gain, elapsed_seconds=elapsed,
                           notification=notification)


def load_game(filepath, now: Optional[float] = None) -> ReconcileResult:
    """Read a save file (if any) and reconcile it against `now`."""
    now = now_ms() if now is None else now
    path = Path(filepath)
    if not path.exists():
        return load_and_reconcile(None, now)
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        result = load_and_reconcile(None, now)
        result.error = f"could not read {path}: {e}"
        return result
    return load_and_reconcile(raw, now)
