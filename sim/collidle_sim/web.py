"""
Collidle Economy Simulator - Web API
======================================
FastAPI server exposing the engine to a browser front end.

Usage:
    python cli.py web [--port 8080]
"""

from dataclasses import asdict
from typing import Optional, Union

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
import uvicorn

from collidle_sim import econ
from collidle_sim.constants import MAX_CLICKS_PER_REQUEST
from collidle_sim.io import state_to_dict
from collidle_sim.models import BuyMax, parse_buy_amount
from collidle_sim.session import GameSession, GameConfig


# ---------------------------------------------------------------------------
# Pydantic models for request/response
# ---------------------------------------------------------------------------

class PurchaseRequest(BaseModel):
    kind: str
    amount: Union[int, str] = 1


class ClickRequest(BaseModel):
    times: int = Field(default=1, ge=0, le=MAX_CLICKS_PER_REQUEST)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _derived(session: GameSession) -> dict:
    e = session.engine
    return {
        "massPerClick": e.mass_per_click,
        "massPerSecond": e.mass_per_second,
        "echoThreshold": e.echo_threshold,
        "echoProgressPercent": e.echo_progress_percent,
        "echoMultiplierCost": econ.echo_multiplier_cost(e.state),
    }


def _upgrades_to_dict(session: GameSession, amount) -> dict:
    s = session.state
    result = {}
    for kind, info in econ.UPGRADES.items():
        up = s.upgrades[kind]
        levels, total = econ.resolve_purchase(s, kind, amount)
        if not isinstance(amount, BuyMax) and levels == 0:
            total = econ.bulk_upgrade_cost(kind, up.level, amount.count)
        result[kind.value] = {
            "name": info.name,
            "effect": info.effect,
            "level": up.level,
            "cost": up.cost,
            "bulkLevels": levels,
            "bulkCost": total,
            "canAfford": econ.can_afford(s, kind, amount),
        }
    return result


def _resolve_kind_or_400(key: str):
    try:
        return econ.resolve_kind(key)
    except ValueError as e:
        raise HTTPException(400, str(e))


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(session: GameSession) -> FastAPI:
    app = FastAPI(title="Collidle Economy Simulator")

    @app.get("/api/state")
    def api_state():
        with session.lock:
            return {
                "state": state_to_dict(session.state),
                "derived": _derived(session),
                "notifications": [asdict(n) for n in session.engine.visible_notifications()],
            }

    @app.get("/api/upgrades")
    def api_upgrades(amount: str = "1"):
        buy = parse_buy_amount(amount)
        with session.lock:
            return {"amount": amount, "upgrades": _upgrades_to_dict(session, buy)}

    @app.post("/api/click")
    def api_click(req: Optional[ClickRequest] = None):
        times = req.times if req else 1
        gained = session.click(times)
        return {"gained": gained, "mass": session.state.mass}

    @app.post("/api/purchase")
    def api_purchase(req: PurchaseRequest):
        kind = _resolve_kind_or_400(req.kind)
        bought = session.purchase(kind, parse_buy_amount(req.amount))
        up = session.state.upgrades[kind]
        return {"purchased": bought, "level": up.level, "cost": up.cost,
                "mass": session.state.mass}

    @app.post("/api/echo")
    def api_echo():
        performed = session.echo()
        return {"performed": performed, "echoPoints": session.state.echo_points}

    @app.post("/api/echo-multiplier")
    def api_echo_multiplier():
        performed = session.buy_echo_multiplier()
        return {"performed": performed,
                "echoPoints": session.state.echo_points,
                "echoMultiplierLevel": session.state.echo_multiplier_level}

    @app.get("/api/notifications")
    def api_notifications():
        with session.lock:
            drained = session.engine.drain_notifications()
        return {"notifications": [asdict(n) for n in drained]}

    @app.post("/api/save")
    def api_save():
        try:
            session.save()
        except OSError as e:
            raise HTTPException(500, f"Save failed: {e}")
        return {"saved": str(session.config.save_path)}

    return app


def start_server(port: int = 8080, config: Optional[GameConfig] = None):
    """Start the session timers and the uvicorn server."""
    session = GameSession(config or GameConfig())
    if session.load_result.error:
        print(f"[save] Warning: {session.load_result.error}, starting fresh")
    if session.load_result.offline_gain > 0:
        print(f"[offline] {session.load_result.notification.message}")
    session.start()
    print(f"Starting Collidle at http://localhost:{port}")
    try:
        uvicorn.run(create_app(session), host="0.0.0.0", port=port, log_level="info")
    finally:
        session.stop()


if __name__ == "__main__":
    start_server()
