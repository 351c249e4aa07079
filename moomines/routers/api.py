from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel
from slowapi import Limiter
from slowapi.util import get_remote_address

from moomines.config import settings
from moomines.core.economy import format_cooldown
from moomines.core.games.mines import MinesGame
from moomines.core.logger import get_logger

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit.enabled)

logger = get_logger("api")

router = APIRouter()

# ==================== Request Models ====================

class StartRequest(BaseModel):
    wager: Optional[float] = None

class RevealRequest(BaseModel):
    index: int


# ==================== Helpers ====================

def get_game(request: Request) -> MinesGame:
    """The engine wired up by the application factory."""
    return request.app.state.game

def get_rate_limit() -> str:
    """Get rate limit string from config."""
    return settings.rate_limit.game_requests

def get_api_rate_limit() -> str:
    return settings.rate_limit.api_requests

def money(value) -> float:
    return float(value)


# ==================== Board Endpoints ====================

@router.get("/state")
@limiter.limit(get_api_rate_limit)
async def get_state(request: Request):
    return get_game(request).snapshot().to_dict()

@router.get("/board")
async def get_board(request: Request):
    """Board constants and the full multiplier table."""
    game = get_game(request)
    return {
        "size": game.board.size,
        "total_tiles": game.board.total_tiles,
        "safe_tiles": game.board.safe_tiles,
        "min_multiplier": money(game.curve.min_multiplier),
        "max_multiplier": money(game.curve.max_multiplier),
        "multipliers": [money(m) for m in game.curve.table()],
    }


# ==================== Round Endpoints ====================

@router.post("/round/start")
@limiter.limit(get_rate_limit)
async def start_round(request: Request, data: StartRequest):
    game = get_game(request)
    result = game.start_round(data.wager)
    if not result.applied:
        raise HTTPException(status_code=409, detail="A round is already in progress")

    return {
        "wager": money(result.wager),
        "balance": money(result.balance),
        "snapshot": game.snapshot().to_dict(),
    }

@router.post("/round/reveal")
@limiter.limit(get_rate_limit)
async def reveal_tile(request: Request, data: RevealRequest):
    game = get_game(request)
    result = game.reveal_tile(data.index)
    return {
        "applied": result.applied,
        "index": result.index,
        "signal": result.signal.value if result.signal else None,
        "safe_revealed": result.safe_revealed,
        "multiplier": money(result.multiplier),
        "state": result.state.value,
        "snapshot": game.snapshot().to_dict(),
    }

@router.post("/round/cashout")
@limiter.limit(get_rate_limit)
async def cash_out(request: Request):
    game = get_game(request)
    result = game.cash_out()
    return {
        "applied": result.applied,
        "payout": money(result.payout),
        "multiplier": money(result.multiplier),
        "balance": money(result.balance),
        "snapshot": game.snapshot().to_dict(),
    }

@router.post("/round/reset")
@limiter.limit(get_rate_limit)
async def reset_round(request: Request):
    return get_game(request).reset_round().to_dict()


# ==================== Economy Endpoints ====================

@router.get("/economy/claim")
async def claim_status(request: Request):
    game = get_game(request)
    remaining = game.time_until_claim()
    return {
        "can_claim": remaining == 0,
        "time_until_claim_ms": remaining,
        "countdown": format_cooldown(remaining),
        "amount": money(game.economy.claim_amount),
        "balance": money(game.balance),
    }

@router.post("/economy/claim")
@limiter.limit(get_api_rate_limit)
async def claim_stipend(request: Request):
    game = get_game(request)
    result = game.claim()

    if not result.claimed:
        raise HTTPException(
            status_code=400,
            detail=f"Already claimed. Come back in {format_cooldown(result.time_until_claim_ms)}",
        )

    logger.info(f"Stipend claimed, balance {result.balance}")
    return {
        "success": True,
        "amount": money(result.amount),
        "balance": money(result.balance),
        "time_until_claim_ms": result.time_until_claim_ms,
    }
