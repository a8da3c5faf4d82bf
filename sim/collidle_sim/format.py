"""
Collidle Economy Simulator - Output Formatting
================================================
Mass units and pretty-printing for the CLI and REPL.
"""

from typing import Iterable

from collidle_sim import econ
from collidle_sim.models import BuyMax

MASS_UNITS = [
    (1e24, "Yg"),
    (1e21, "Zg"),
    (1e18, "Eg"),
    (1e15, "Pg"),
    (1e12, "Tg"),
    (1e9, "Gg"),
    (1e6, "Mg"),
    (1e3, "kg"),
    (1.0, "g"),
    (1e-3, "mg"),
    (1e-6, "μg"),
    (1e-9, "ng"),
    (1e-12, "pg"),
    (1e-15, "fg"),
    (1e-18, "ag"),
]


def fmt_mass(mass: float) -> str:
    for value, symbol in MASS_UNITS:
        if mass >= value:
            scaled = mass / value
            if scaled >= 1000:
                return f"{scaled:.2e} {symbol}"
            if scaled >= 100:
                return f"{scaled:.0f} {symbol}"
            if scaled >= 10:
                return f"{scaled:.1f} {symbol}"
            return f"{scaled:.2f} {symbol}"
    return f"{mass:.2e} g"


def fmt_rate(mass_per_second: float) -> str:
    return f"{fmt_mass(mass_per_second)}/s"


def fmt_duration(seconds: float) -> str:
    seconds = int(max(0, seconds))
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    if h:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m}:{s:02d}"


def print_status(engine):
    s = engine.state
    print()
    print("=" * 56)
    print("  COLLIDLE")
    print("=" * 56)
    print(f" Mass:            {fmt_mass(s.mass)}")
    print(f" Per click:       {fmt_mass(engine.mass_per_click)}")
    print(f" Per second:      {fmt_rate(engine.mass_per_second)}")
    print(f" Total clicks:    {s.total_clicks}")
    if s.first_echo_unlocked:
        print(f" Echo Points:     {s.echo_points}")
        print(f" Echo multiplier: level {s.echo_multiplier_level} "
              f"(next costs {econ.echo_multiplier_cost(s)} EP)")
        print(f" Echo progress:   {engine.echo_progress_percent:.1f}% "
              f"of {fmt_mass(engine.echo_threshold)}")


def print_upgrades(engine, amount):
    s = engine.state
    label = "max" if isinstance(amount, BuyMax) else str(amount.count)
    print()
    print(f"--- UPGRADES (buy x{label}) ---")
    print(f" {'Key':<15} {'Name':<16} {'Lvl':>4} {'Next cost':>12}  Effect")
    print(f" {'---':<15} {'----':<16} {'---':>4} {'---------':>12}  ------")
    for kind, info in econ.UPGRADES.items():
        up = s.upgrades[kind]
        mark = "" if econ.can_afford(s, kind, amount) else "  (unaffordable)"
        print(f" {kind.value:<15} {info.name:<16} {up.level:>4} "
              f"{fmt_mass(up.cost):>12}  {info.effect}{mark}")


def print_notifications(notifications: Iterable):
    for n in notifications:
        print(f"[{n.kind}] {n.message}")
