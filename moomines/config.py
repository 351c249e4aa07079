"""
Configuration management for Moo Mines.
Supports config.json with environment variable overrides.
All paths are resolved relative to the project root.
"""

import json
import os
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()

# Project root directory (parent of 'moomines' folder)
PROJECT_ROOT = Path(__file__).parent.parent


def get_env(key: str, default: str = None) -> Optional[str]:
    """Get environment variable with optional default."""
    return os.environ.get(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    val = os.environ.get(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes", "on")


def get_env_int(key: str, default: int = 0) -> int:
    """Get integer environment variable."""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        return default


def get_env_float(key: str, default: float = 0.0) -> float:
    """Get float environment variable."""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        return default


# ==================== Configuration Models ====================

class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = True
    name: str = "Moo Mines"


class BoardConfig(BaseModel):
    """Board shape and payout curve."""
    size: int = Field(default=5, ge=2)
    min_multiplier: float = 1.0
    max_multiplier: float = 20.0
    first_step_multiplier: float = 1.05  # Multiplier right after the first safe tile
    gamma: float = 2.2  # Ease-in exponent

    @property
    def total_tiles(self) -> int:
        return self.size * self.size

    @property
    def safe_tiles(self) -> int:
        return self.total_tiles - 1


class EconomyConfig(BaseModel):
    starting_balance: float = 1000.0
    default_wager: float = 50.0
    claim_amount: float = 100.0
    claim_interval_hours: float = 6

    @property
    def claim_interval_ms(self) -> int:
        return int(self.claim_interval_hours * 60 * 60 * 1000)


class PersistenceConfig(BaseModel):
    backend: str = "sqlite"  # "sqlite" or "memory"
    balance_key: str = "moo_balance"
    last_claim_key: str = "moo_lastClaim"


class RateLimitConfig(BaseModel):
    enabled: bool = True
    game_requests: str = "120/minute"  # Tile reveals, cash outs, starts
    api_requests: str = "60/minute"   # For general API calls


class LoggingConfig(BaseModel):
    level: str = "INFO"
    log_to_file: bool = False
    formatter: str = "color"


class PathsConfig(BaseModel):
    """All paths are relative to PROJECT_ROOT."""
    config_file: str = "config.json"
    database: str = "data/moomines.db"
    log_file: str = "data/app.log"

    def get_db_path(self) -> Path:
        return PROJECT_ROOT / self.database

    def get_log_path(self) -> Path:
        return PROJECT_ROOT / self.log_file


class AppConfig(BaseModel):
    """Main application configuration."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    board: BoardConfig = Field(default_factory=BoardConfig)
    economy: EconomyConfig = Field(default_factory=EconomyConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)


# ==================== Configuration Loading ====================

def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load configuration from config.json with environment variable overrides.
    Environment variables take precedence over config.json values.
    """
    if config_path is None:
        config_path = PROJECT_ROOT / PathsConfig().config_file

    # Start with defaults
    data = {}

    # Load from config.json if it exists
    if config_path.exists():
        with open(config_path, "r") as f:
            data = json.load(f)

    # Apply environment variable overrides
    if get_env("SERVER_HOST"):
        data.setdefault("server", {})["host"] = get_env("SERVER_HOST")
    if get_env("SERVER_PORT"):
        data.setdefault("server", {})["port"] = get_env_int("SERVER_PORT", 8000)
    if get_env("DEBUG"):
        data.setdefault("server", {})["debug"] = get_env_bool("DEBUG")

    if get_env("DB_PATH"):
        data.setdefault("paths", {})["database"] = get_env("DB_PATH")
    if get_env("STORE_BACKEND"):
        data.setdefault("persistence", {})["backend"] = get_env("STORE_BACKEND")

    if get_env("STARTING_BALANCE"):
        data.setdefault("economy", {})["starting_balance"] = get_env_float("STARTING_BALANCE", 1000.0)
    if get_env("CLAIM_AMOUNT"):
        data.setdefault("economy", {})["claim_amount"] = get_env_float("CLAIM_AMOUNT", 100.0)
    if get_env("CLAIM_INTERVAL_HOURS"):
        data.setdefault("economy", {})["claim_interval_hours"] = get_env_float("CLAIM_INTERVAL_HOURS", 6)

    if get_env("LOG_LEVEL"):
        data.setdefault("logging", {})["level"] = get_env("LOG_LEVEL")
    if get_env("LOG_TO_FILE"):
        data.setdefault("logging", {})["log_to_file"] = get_env_bool("LOG_TO_FILE")
    if get_env("LOG_FORMATTER"):
        data.setdefault("logging", {})["formatter"] = get_env("LOG_FORMATTER")

    if get_env("RATE_LIMIT_ENABLED"):
        data.setdefault("rate_limit", {})["enabled"] = get_env_bool("RATE_LIMIT_ENABLED", True)
    if get_env("RATE_LIMIT_GAME_REQUESTS"):
        data.setdefault("rate_limit", {})["game_requests"] = get_env("RATE_LIMIT_GAME_REQUESTS")
    if get_env("RATE_LIMIT_API_REQUESTS"):
        data.setdefault("rate_limit", {})["api_requests"] = get_env("RATE_LIMIT_API_REQUESTS")

    return AppConfig(**data)


def save_config(config: AppConfig, config_path: Optional[Path] = None):
    """Save configuration to config.json."""
    if config_path is None:
        config_path = PROJECT_ROOT / PathsConfig().config_file

    # Convert to dict, excluding paths (they're computed)
    data = config.model_dump(exclude={"paths"})

    with open(config_path, "w") as f:
        json.dump(data, f, indent=4)


# Global config instance
settings = load_config()
