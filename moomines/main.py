"""
Moo Mines Main Application Entry Point
FastAPI service exposing the round engine over JSON and a WebSocket feed.
"""

import sys
from pathlib import Path
from typing import Callable, Optional

# Add parent directory to path so imports work when running directly
if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).parent.parent))

import orjson as json
import uvicorn
from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from moomines.config import AppConfig, settings
from moomines.core.economy import Economy, format_cooldown, now_ms
from moomines.core.exceptions import InsufficientFunds, InvalidAmount, NoFunds
from moomines.core.games.mines import MinesGame
from moomines.core.logger import get_logger, init_logging
from moomines.core.rng import TrueRNG
from moomines.core.storage import PersistenceStore, create_store
from moomines.core.websocket import ConnectionManager
from moomines.routers import api

logger = get_logger("main")
ws_logger = get_logger("websocket")


# ==================== Application Setup ====================


def build_game(
    config: AppConfig,
    store: Optional[PersistenceStore] = None,
    source: Optional[TrueRNG] = None,
    clock: Callable[[], int] = now_ms,
) -> MinesGame:
    """Load the wallet and wire the round engine around it."""
    if store is None:
        store = create_store(config.persistence, config.paths)
    economy = Economy.load(store, config.economy, config.persistence)
    return MinesGame(economy, config.board, source=source, clock=clock)


def create_app(
    config: Optional[AppConfig] = None,
    store: Optional[PersistenceStore] = None,
    source: Optional[TrueRNG] = None,
    clock: Callable[[], int] = now_ms,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or settings

    app = FastAPI(
        title=config.server.name,
        docs_url="/docs" if config.server.debug else None,
        redoc_url=None,
    )

    api.limiter.enabled = config.rate_limit.enabled
    app.state.limiter = api.limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    if config.server.debug:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    ws_manager = ConnectionManager()
    game = build_game(config, store=store, source=source, clock=clock)
    game.subscribe(ws_manager.publish_event)

    app.state.config = config
    app.state.game = game
    app.state.ws_manager = ws_manager

    app.include_router(api.router, prefix="/api")
    register_handlers(app)
    register_routes(app)

    logger.info(f"Application '{config.server.name}' initialized")
    logger.info(f"Board {config.board.size}x{config.board.size}, balance {game.balance}")
    return app


# ==================== Exception Handlers ====================


def register_handlers(app: FastAPI):
    @app.exception_handler(NoFunds)
    async def no_funds_handler(request: Request, exc: NoFunds):
        return JSONResponse(
            status_code=409,
            content={
                "error": "no_funds",
                "detail": "Balance is empty. Claim the stipend to keep playing.",
                "balance": float(exc.balance),
                "time_until_claim_ms": exc.time_until_claim_ms,
                "countdown": format_cooldown(exc.time_until_claim_ms or 0),
            },
        )

    @app.exception_handler(InvalidAmount)
    async def invalid_amount_handler(request: Request, exc: InvalidAmount):
        return JSONResponse(status_code=400, content={"error": "invalid_amount", "detail": str(exc)})

    @app.exception_handler(InsufficientFunds)
    async def insufficient_funds_handler(request: Request, exc: InsufficientFunds):
        logger.warning(f"Insufficient funds reached the API: {exc}")
        return JSONResponse(
            status_code=409,
            content={"error": "insufficient_funds", "detail": str(exc)},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unhandled exceptions gracefully."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc) if app.state.config.server.debug else None,
            },
        )


# ==================== Routes ====================


def register_routes(app: FastAPI):
    @app.get("/health")
    async def health():
        return {"status": "ok", "connections": app.state.ws_manager.get_connection_count()}

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """
        WebSocket endpoint for real-time updates.
        Sends the current snapshot on connect, then every round event.
        Clients may send {"type": "ping"} to keep the connection alive.
        """
        manager: ConnectionManager = app.state.ws_manager
        game: MinesGame = app.state.game

        initial = {"type": "state", "snapshot": game.snapshot().to_dict()}
        await manager.connect(websocket, initial)

        try:
            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    continue

                if isinstance(message, dict) and message.get("type") == "ping":
                    await websocket.send_bytes(json.dumps({"type": "pong"}))

        except WebSocketDisconnect as e:
            manager.disconnect(websocket)
            ws_logger.info("WebSocket disconnected", extra={"ws_disconnect_code": e.code})
        except Exception as e:
            manager.disconnect(websocket)
            ws_logger.warning(f"WebSocket error: {e}")


# ==================== Main Entry Point ====================


def main():
    import argparse

    parser = argparse.ArgumentParser(description="Moo Mines server")
    parser.add_argument("--host", default=settings.server.host)
    parser.add_argument("--port", type=int, default=settings.server.port)
    parser.add_argument(
        "--memory",
        action="store_true",
        help="Keep the wallet in memory instead of the SQLite store",
    )
    args = parser.parse_args()

    if args.memory:
        settings.persistence.backend = "memory"

    init_logging(
        level=settings.logging.level,
        log_to_file=settings.logging.log_to_file,
        formatter=settings.logging.formatter,
        log_file_path=settings.paths.get_log_path(),
    )

    logger.info(f"Starting server on {args.host}:{args.port}")
    uvicorn.run(create_app(settings), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
