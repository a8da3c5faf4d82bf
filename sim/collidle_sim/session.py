"""
Collidle Economy Simulator - Game Session
===========================================
Owns the one live GameState/engine pair, drives the timers, and decides
when to persist. All mutations go through `lock`.
"""

import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from collidle_sim.constants import (
    TICK_INTERVAL, AUTOSAVE_INTERVAL, SAVE_DEBOUNCE, MAX_CLICKS_PER_REQUEST,
)
from collidle_sim.engine import ProgressionEngine
from collidle_sim.io import load_game, save_game, ReconcileResult

DEFAULT_SAVE_PATH = Path.home() / ".collidle" / "save.yaml"


@dataclass
class GameConfig:
    save_path: Path = DEFAULT_SAVE_PATH
    tick_interval: float = TICK_INTERVAL
    autosave_interval: float = AUTOSAVE_INTERVAL
    save_debounce: float = SAVE_DEBOUNCE


class GameSession:
    def __init__(self, config: Optional[GameConfig] = None,
                 clock: Callable[[], float] = time.time):
        self.config = config or GameConfig()
        self.clock = clock
        self.lock = threading.Lock()

        now = self.clock()
        self.load_result: ReconcileResult = load_game(self.config.save_path, now * 1000.0)
        self.engine = ProgressionEngine(self.load_result.state)
        if self.load_result.notification:
            self.engine.notify(self.load_result.notification)
        self.engine.check_first_echo_unlock()

        self._last_pump = now
        self._last_save = now
        self._last_autosave = now
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()

    @property
    def state(self):
        return self.engine.state

    # ------------------------------------------------------------------
    # Timer loop
    # ------------------------------------------------------------------

    def pump(self, now: Optional[float] = None) -> bool:
        """Advance the engine to `now` and persist if due. Returns True if saved."""
        now = self.clock() if now is None else now
        with self.lock:
            delta = now - self._last_pump
            self._last_pump = max(self._last_pump, now)
            if delta > 0:
                self.engine.advance(delta)

            if now - self._last_autosave >= self.config.autosave_interval:
                self._last_autosave = now
                self._save_locked(now)
                return True
            if self.engine.dirty and now - self._last_save >= self.config.save_debounce:
                self._last_save = now
                self._save_locked(now)
                return True
        return False

    def save(self, now: Optional[float] = None):
        now = self.clock() if now is None else now
        with self.lock:
            self._save_locked(now)

    def _save_locked(self, now: float):
        save_game(self.engine.state, self.config.save_path, now * 1000.0)
        self.engine.dirty = False
        self._last_save = now

    def start(self):
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def stop(self, save: bool = True):
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=max(1.0, self.config.tick_interval * 5))
            self._thread = None
        if save:
            self.save()

    def _run(self):
        while not self._stop.wait(self.config.tick_interval):
            try:
                self.pump()
            except OSError as e:
                # keep ticking; the next autosave or dirty save retries
                print(f"[save] Warning: could not write {self.config.save_path}: {e}")

    # ------------------------------------------------------------------
    # Inbound events
    # ------------------------------------------------------------------

    def click(self, times: int = 1) -> float:
        times = min(max(0, times), MAX_CLICKS_PER_REQUEST)
        with self.lock:
            return sum(self.engine.click() for _ in range(times))

    def purchase(self, kind, amount) -> int:
        with self.lock:
            return self.engine.purchase_upgrade(kind, amount)

    def echo(self) -> bool:
        with self.lock:
            return self.engine.perform_echo()

    def buy_echo_multiplier(self) -> bool:
        with self.lock:
            return self.engine.purchase_echo_multiplier_level()
