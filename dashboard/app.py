import os
import asyncio
from typing import Any, Dict, List

import psutil
from fastapi import FastAPI, Request, Form, HTTPException, Depends, WebSocket, WebSocketDisconnect
from fastapi.responses import RedirectResponse, JSONResponse

from utils.logging_setup import get_logger

logger = get_logger(__name__)

# --- FastAPI App Setup ---
app = FastAPI(title="Committee Relay Dashboard")
app.state.bot = None

STATS_INTERVAL_SECONDS = 5


def _expected_session_id():
    return os.getenv("DASHBOARD_SESSION_ID")


# --- Dependencies for Authentication ---
async def get_websocket_user(websocket: WebSocket):
    session_id_from_url = websocket.query_params.get("session_id")
    expected = _expected_session_id()
    if expected and session_id_from_url == expected:
        return session_id_from_url

    await websocket.close(code=1008)
    raise WebSocketDisconnect(code=1008, reason="Invalid session ID in URL")


async def get_current_user(request: Request):
    """Checks for a valid session cookie."""
    session_id = request.cookies.get("session_id")
    expected = _expected_session_id()
    if expected and session_id == expected:
        return session_id

    raise HTTPException(status_code=401, detail="Not authenticated")


# --- Authentication Routes ---

@app.get("/logout")
async def logout():
    """Logs the user out by clearing the session cookie."""
    response = JSONResponse(content={"logged_out": True})
    response.delete_cookie("session_id")
    return response


@app.post("/login")
async def login(password: str = Form(...)):
    """Handles the login form submission."""
    expected_password = os.getenv("DASHBOARD_PASSWORD")
    if expected_password and password == expected_password:
        redirect_response = RedirectResponse(url="/api/status", status_code=303)
        redirect_response.set_cookie(key="session_id", value=_expected_session_id(), httponly=True)
        return redirect_response

    logger.warning("Rejected dashboard login attempt")
    raise HTTPException(status_code=401, detail="Incorrect password")


# --- Status Routes ---

def _relay_requests(bot) -> List[Dict[str, Any]]:
    relay = bot.get_cog("Relay")
    if relay is None:
        return []
    return [workflow.describe() for workflow in list(relay.active_requests.values())]


@app.get("/api/status", dependencies=[Depends(get_current_user)])
async def status(request: Request):
    """Bot readiness, configured committees and the relay requests in flight."""
    bot = request.app.state.bot
    if not bot or not bot.is_ready():
        return {"ready": False}

    config = bot.config
    guild = bot.get_guild(config.guild_id)
    return {
        "ready": True,
        "user": {"id": bot.user.id, "name": bot.user.name},
        "guild": {"id": config.guild_id, "name": guild.name if guild else None},
        "committees": [
            {"name": c.name, "role_id": c.role_id, "channel_id": c.channel_id}
            for c in config.committees
        ],
        "relays": _relay_requests(bot),
    }


@app.websocket("/ws/stats")
async def websocket_endpoint(websocket: WebSocket, session_id: str = Depends(get_websocket_user)):
    """Provides real-time bot and host stats via WebSocket."""
    await websocket.accept()
    try:
        while True:
            bot = websocket.app.state.bot
            ready = bool(bot and bot.is_ready())

            bot_stats = {
                "guild_count": len(bot.guilds) if ready else 0,
                "latency_ms": round(bot.latency * 1000) if ready else "N/A",
                "active_relays": len(_relay_requests(bot)) if ready else 0,
            }

            memory = psutil.virtual_memory()
            system_stats = {
                "cpu_percent": psutil.cpu_percent(interval=None),
                "ram_total_gb": round(memory.total / (1024**3), 2),
                "ram_used_gb": round(memory.used / (1024**3), 2),
                "ram_percent": memory.percent,
            }

            await websocket.send_json({"bot": bot_stats, "system": system_stats})
            await asyncio.sleep(STATS_INTERVAL_SECONDS)
    except WebSocketDisconnect:
        logger.info("Dashboard client disconnected.")
