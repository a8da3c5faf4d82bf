"""
Collidle Economy Simulator - Interactive REPL
===============================================
"""

import cmd
import math
from typing import Optional

from collidle_sim import econ
from collidle_sim.format import (
    fmt_mass, fmt_duration, print_status, print_upgrades, print_notifications,
)
from collidle_sim.models import BuyCount, parse_buy_amount
from collidle_sim.session import GameSession, GameConfig


class CollidleREPL(cmd.Cmd):
    intro = (
        "\n"
        "================================================\n"
        "  Collidle - Interactive Mode\n"
        "================================================\n"
        "Type 'help' for commands. Type 'upgrades' for the shop.\n"
    )
    prompt = "collidle> "

    def __init__(self, session: Optional[GameSession] = None):
        super().__init__()
        self.session = session or GameSession(GameConfig())
        self.buy_amount = BuyCount(1)

    @property
    def engine(self):
        return self.session.engine

    def preloop(self):
        if self.session.load_result.error:
            print(f"[save] Warning: {self.session.load_result.error}, starting fresh")
        self._flush()

    def postcmd(self, stop, line):
        # Wall-clock time since the last command counts as play time
        self.session.pump()
        self._flush()
        return stop

    def _flush(self):
        print_notifications(self.engine.drain_notifications())

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def do_click(self, arg):
        """Click the core: click [times]"""
        try:
            times = int(arg) if arg.strip() else 1
        except ValueError:
            print("Usage: click [times]")
            return
        gained = self.session.click(times)
        print(f"+{fmt_mass(gained)} -> {fmt_mass(self.engine.state.mass)}")

    def do_wait(self, arg):
        """Let time pass without playing: wait <seconds>"""
        try:
            seconds = float(arg)
        except ValueError:
            seconds = -1.0
        if not 0 < seconds < math.inf:
            print("Usage: wait <seconds>")
            return
        before = self.engine.state.mass
        with self.session.lock:
            self.engine.advance(seconds)
        print(f"Waited {fmt_duration(seconds)}: +{fmt_mass(self.engine.state.mass - before)}")

    def do_amount(self, arg):
        """Set buy amount: amount <1|10|max|N>"""
        amount = parse_buy_amount(arg)
        if amount == BuyCount(0):
            print("Usage: amount <1|10|max|N>")
            return
        self.buy_amount = amount
        print(f"Buy amount: {arg.strip()}")

    def do_buy(self, arg):
        """Buy an upgrade: buy <upgrade> [amount]
        Upgrades: impactForce, emitterSpeed, coreStability, radiationLeak"""
        parts = arg.split()
        if not parts:
            print("Usage: buy <upgrade> [amount]")
            return
        try:
            kind = econ.resolve_kind(parts[0])
        except ValueError as e:
            print(f"Error: {e}")
            return
        amount = parse_buy_amount(parts[1]) if len(parts) > 1 else self.buy_amount
        bought = self.session.purchase(kind, amount)
        if bought:
            up = self.engine.state.upgrades[kind]
            print(f"Bought {bought}x {econ.UPGRADES[kind].name} "
                  f"(level {up.level}, next {fmt_mass(up.cost)})")
        else:
            print("Can't afford that.")

    def do_upgrades(self, arg):
        """Show the upgrade shop"""
        print_upgrades(self.engine, self.buy_amount)

    def do_echo(self, arg):
        """Perform a Quantum Echo (prestige)"""
        if not self.engine.state.first_echo_unlocked:
            print(f"Quantum Echo is locked until you reach {fmt_mass(self.engine.echo_threshold)}.")
            return
        if not self.session.echo():
            print(f"Need {fmt_mass(self.engine.echo_threshold)} "
                  f"({self.engine.echo_progress_percent:.1f}% there).")

    def do_multiplier(self, arg):
        """Spend echo points on the echo multiplier"""
        cost = econ.echo_multiplier_cost(self.engine.state)
        if self.session.buy_echo_multiplier():
            print(f"Echo multiplier now level {self.engine.state.echo_multiplier_level}")
        else:
            print(f"Need {cost} EP.")

    def do_status(self, arg):
        """Show current economy"""
        print_status(self.engine)

    def do_save(self, arg):
        """Save the game"""
        try:
            self.session.save()
            print(f"[save] Saved to {self.session.config.save_path}")
        except OSError as e:
            print(f"Error: {e}")

    def do_quit(self, arg):
        """Save and exit the REPL"""
        self.do_save("")
        print("Bye!")
        return True

    do_exit = do_quit
    do_q = do_quit
    do_EOF = do_quit
    do_c = do_click
