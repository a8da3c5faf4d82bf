"""
Collidle Economy Simulator - Progression Engine
=================================================
The single mutator of GameState. Player actions (click, purchase, echo) and
timer-driven rules (passive income, meteors) all go through here.
"""

import heapq
import math
from typing import List, Optional

from collidle_sim import econ
from collidle_sim.constants import (
    STARTING_MASS, FIRST_ECHO_UNLOCK_MASS, METEOR_CLICK_MULTIPLIER,
    METEOR_PERIOD, METEOR_DELAY, NOTIFICATION_TTL, MAX_PENDING_NOTIFICATIONS,
)
from collidle_sim.format import fmt_mass
from collidle_sim.models import (
    GameState, Notification, PurchaseAmount, ScheduledEvent, parse_buy_amount,
)

METEOR_EVENT = "meteor"


class ProgressionEngine:
    def __init__(self, state: Optional[GameState] = None):
        self.state = state if state is not None else GameState()
        self.clock = 0.0                # seconds since the engine started
        self.dirty = False              # set on mass / echo / upgrade changes
        self.notifications: List[Notification] = []
        self._events: List[ScheduledEvent] = []
        self._event_seq = 0
        self._meteor_timer = 0.0
        self._shown: List[Notification] = []

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def mass_per_click(self) -> float:
        return econ.mass_per_click(self.state)

    @property
    def mass_per_second(self) -> float:
        return econ.mass_per_second(self.state)

    @property
    def echo_threshold(self) -> float:
        return econ.echo_threshold(self.state)

    @property
    def echo_progress_percent(self) -> float:
        return econ.echo_progress_percent(self.state)

    @property
    def pending_events(self) -> List[ScheduledEvent]:
        return sorted(self._events)

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def click(self) -> float:
        gain = self.mass_per_click
        self._add_mass(gain)
        self.state.total_clicks += 1
        self.check_first_echo_unlock()
        return gain

    def purchase_upgrade(self, kind, amount: PurchaseAmount) -> int:
        """Buy levels of an upgrade. Returns the number of levels bought.

        Unaffordable requests, unknown kinds and malformed amounts leave the
        state untouched and return 0.
        """
        try:
            kind = econ.resolve_kind(kind)
        except ValueError:
            return 0
        amount = parse_buy_amount(amount)
        levels, total = econ.resolve_purchase(self.state, kind, amount)
        if levels <= 0:
            return 0

        s = self.state
        s.mass = max(0.0, s.mass - total)
        s.upgrades[kind].level += levels
        self.dirty = True
        return levels

    def perform_echo(self) -> bool:
        s = self.state
        if not s.mass >= self.echo_threshold:
            return False
        s.mass = STARTING_MASS
        s.echo_points += 1
        s.reset_upgrades()
        self.dirty = True
        self._notify("echo_complete", f"Quantum Echo complete! Echo Points: {s.echo_points}")
        return True

    def purchase_echo_multiplier_level(self) -> bool:
        s = self.state
        cost = econ.echo_multiplier_cost(s)
        if s.echo_points < cost:
            return False
        s.echo_points -= cost
        s.echo_multiplier_level += 1
        self.dirty = True
        return True

    def check_first_echo_unlock(self) -> bool:
        """One-way latch. Returns True only on the call that flips it."""
        s = self.state
        if s.first_echo_unlocked or not s.mass >= FIRST_ECHO_UNLOCK_MASS:
            return False
        s.first_echo_unlocked = True
        self._notify("echo_unlocked", "Quantum Echo unlocked! You can now prestige.")
        return True

    # ------------------------------------------------------------------
    # Timer-driven rules
    # ------------------------------------------------------------------

    def tick(self, delta_seconds: float) -> float:
        """Passive generation. Linear in delta_seconds."""
        if not math.isfinite(delta_seconds) or delta_seconds <= 0:
            return 0.0
        gain = self.mass_per_second * delta_seconds
        self._add_mass(gain)
        self.check_first_echo_unlock()
        return gain

    def trigger_meteor_bonus(self, at: Optional[float] = None) -> float:
        """Announce a meteor now and queue its impact METEOR_DELAY later.

        The bonus is priced at trigger time; later rate changes do not
        affect it.
        """
        at = self.clock if at is None else at
        bonus = METEOR_CLICK_MULTIPLIER * self.mass_per_click
        self._schedule(at + METEOR_DELAY, METEOR_EVENT, bonus)
        self._notify("meteor_incoming", "A meteor is approaching your core!",
                     amount=bonus, at=at)
        return bonus

    def advance(self, seconds: float):
        """Run the timers forward: passive income, meteor timer, event queue."""
        if not math.isfinite(seconds) or seconds <= 0:
            return
        start = self.clock
        self.clock += seconds
        self.tick(seconds)

        # Fixed-rate meteor timer; each meteor is priced at its own instant
        self._meteor_timer += seconds
        while self._meteor_timer >= METEOR_PERIOD:
            self._meteor_timer -= METEOR_PERIOD
            trigger_at = self.clock - self._meteor_timer
            self.trigger_meteor_bonus(at=max(start, trigger_at))

        self._drain_events()

    def _drain_events(self):
        while self._events and self._events[0].due <= self.clock:
            event = heapq.heappop(self._events)
            if event.kind == METEOR_EVENT:
                self._add_mass(event.amount)
                self._notify("meteor_struck",
                             f"A meteor struck your core! It was worth "
                             f"{METEOR_CLICK_MULTIPLIER:,} particles ({fmt_mass(event.amount)}).",
                             amount=event.amount, at=event.due)
        self.check_first_echo_unlock()

    def _schedule(self, due: float, kind: str, amount: float):
        self._event_seq += 1
        heapq.heappush(self._events, ScheduledEvent(due=due, seq=self._event_seq,
                                                    kind=kind, amount=amount))

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def notify(self, notification: Notification):
        """Queue a notification produced outside the engine (e.g. offline report)."""
        notification.created_at = self.clock
        self._push(notification)

    def drain_notifications(self) -> List[Notification]:
        out = self.notifications
        self.notifications = []
        return out

    def visible_notifications(self) -> List[Notification]:
        """Notifications younger than NOTIFICATION_TTL, oldest first."""
        self._prune_shown()
        return list(self._shown)

    def _notify(self, kind: str, message: str, amount: Optional[float] = None,
                at: Optional[float] = None):
        n = Notification(kind=kind, message=message,
                         created_at=self.clock if at is None else at, amount=amount)
        self._push(n)

    def _push(self, n: Notification):
        self.notifications.append(n)
        # oldest undrained entries are dropped first
        del self.notifications[:-MAX_PENDING_NOTIFICATIONS]
        self._shown.append(n)
        self._prune_shown()

    def _prune_shown(self):
        self._shown = [n for n in self._shown if self.clock - n.created_at < NOTIFICATION_TTL]

    # ------------------------------------------------------------------
    # Utilities
    # ------------------------------------------------------------------

    def _add_mass(self, amount: float):
        if not amount > 0:
            return
        self.state.mass += amount
        self.dirty = True
