"""
Collidle Economy Simulator - CLI Entry Point
==============================================
Usage:
    python cli.py play [--save save.yaml]
    python cli.py status [--save save.yaml]
    python cli.py idle --seconds 3600 [--clicks 0] [--buy impactForce:max]
    python cli.py web [--port 8080]
"""

import argparse
import math
import sys
from pathlib import Path

from collidle_sim import econ
from collidle_sim.format import fmt_mass, fmt_duration, print_status, print_upgrades
from collidle_sim.models import parse_buy_amount
from collidle_sim.session import GameSession, GameConfig, DEFAULT_SAVE_PATH


def _open_session(args) -> GameSession:
    config = GameConfig(save_path=Path(args.save))
    session = GameSession(config)
    result = session.load_result
    if result.error:
        print(f"[save] Warning: {result.error}, starting fresh")
    if result.offline_gain > 0:
        print(f"[offline] Away for {fmt_duration(result.elapsed_seconds)}: "
              f"+{fmt_mass(result.offline_gain)}")
    # Offline report already printed; don't repeat it as a notification
    session.engine.drain_notifications()
    return session


def cmd_play(args):
    from collidle_sim.repl import CollidleREPL
    session = GameSession(GameConfig(save_path=Path(args.save)))
    repl = CollidleREPL(session)
    repl.cmdloop()


def cmd_status(args):
    session = _open_session(args)
    print_status(session.engine)
    print_upgrades(session.engine, parse_buy_amount(args.amount))
    session.save()


def cmd_idle(args):
    if not 0 <= args.seconds < math.inf:
        print(f"Error: --seconds must be a non-negative number, got {args.seconds}")
        return 2
    session = _open_session(args)
    engine = session.engine
    start_mass = engine.state.mass

    for _ in range(max(0, args.clicks)):
        engine.click()

    for entry in args.buy or []:
        key, _, amount = entry.partition(":")
        try:
            kind = econ.resolve_kind(key)
        except ValueError as e:
            print(f"Error: {e}")
            continue
        bought = engine.purchase_upgrade(kind, parse_buy_amount(amount or "1"))
        print(f"[buy] {econ.UPGRADES[kind].name}: +{bought} levels")

    # Step at the passive-income cadence so meteors land in order
    remaining = float(args.seconds)
    step = max(session.config.tick_interval, args.step)
    while remaining > 0:
        dt = min(step, remaining)
        engine.advance(dt)
        remaining -= dt

    for n in engine.drain_notifications():
        print(f"[{n.kind}] {n.message}")

    print(f"[idle] {fmt_duration(args.seconds)} simulated: "
          f"{fmt_mass(start_mass)} -> {fmt_mass(engine.state.mass)}")
    if args.echo and engine.perform_echo():
        print(f"[echo] Echo Points: {engine.state.echo_points}")
    session.save()
    print(f"[save] Saved to {session.config.save_path}")


def main():
    parser = argparse.ArgumentParser(
        description="Collidle Economy Simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--save", default=str(DEFAULT_SAVE_PATH),
                        help=f"Save file path (default: {DEFAULT_SAVE_PATH})")
    sub = parser.add_subparsers(dest="command", help="Command to run")

    # play
    sub.add_parser("play", aliases=["repl", "i"],
                   help="Interactive play mode")

    # status
    p_status = sub.add_parser("status", aliases=["st"],
                              help="Load the save, apply offline earnings, print a report")
    p_status.add_argument("--amount", "-a", default="1",
                          help="Buy amount shown in the upgrade table: 1, 10 or max (default: 1)")

    # idle
    p_idle = sub.add_parser("idle",
                            help="Simulate time passing headlessly, then save")
    p_idle.add_argument("--seconds", "-s", type=float, default=60.0,
                        help="Seconds to simulate (default: 60)")
    p_idle.add_argument("--step", type=float, default=1.0,
                        help="Simulation step in seconds (default: 1.0)")
    p_idle.add_argument("--clicks", "-c", type=int, default=0,
                        help="Clicks to apply before simulating (default: 0)")
    p_idle.add_argument("--buy", "-b", action="append", default=None,
                        help="Purchase before simulating (repeatable): 'impactForce:10' or 'emitterSpeed:max'")
    p_idle.add_argument("--echo", action="store_true",
                        help="Perform a Quantum Echo afterwards if the threshold is met")

    # web
    p_web = sub.add_parser("web", aliases=["serve"],
                           help="Start the JSON API server")
    p_web.add_argument("--port", type=int, default=8080,
                       help="Port to serve on (default: 8080)")

    args = parser.parse_args()

    if args.command in ("play", "repl", "i"):
        cmd_play(args)
    elif args.command in ("status", "st"):
        cmd_status(args)
    elif args.command == "idle":
        return cmd_idle(args)
    elif args.command in ("web", "serve"):
        from collidle_sim.web import start_server
        start_server(port=args.port, config=GameConfig(save_path=Path(args.save)))
    else:
        parser.print_help()


if __name__ == "__main__":
    sys.exit(main())
