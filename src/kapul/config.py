"""Configuration management via .env file."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

log = logging.getLogger(__name__)

STORAGE_BACKENDS = ("auto", "sqlite", "json")
DELETE_POLICIES = ("orphan", "cascade")


def _xdg_data_home() -> Path:
    return Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))


def _xdg_config_home() -> Path:
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


@dataclass
class ProxyConfig:
    base_url: str = "http://localhost:3001"
    timeout: float = 8.0  # seconds, whole request

    @property
    def status_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/api/status"

    @property
    def completion_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/api/claude"


@dataclass
class AppConfig:
    # Paths
    data_dir: Path = field(default_factory=lambda: _xdg_data_home() / "kapul")
    config_dir: Path = field(default_factory=lambda: _xdg_config_home() / "kapul")
    db_path: Path = field(init=False)
    kv_path: Path = field(init=False)
    log_path: Path = field(init=False)

    # Storage
    storage_backend: str = "auto"  # auto, sqlite, json
    delete_policy: str = "orphan"  # orphan, cascade

    # AI proxy
    proxy: ProxyConfig = field(default_factory=ProxyConfig)

    def __post_init__(self) -> None:
        self.db_path = self.data_dir / "kapul.db"
        self.kv_path = self.data_dir / "kapul.json"
        self.log_path = self.data_dir / "kapul.log"
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.config_dir.mkdir(parents=True, exist_ok=True)


def _choice(env_name: str, allowed: tuple[str, ...], default: str) -> str:
    value = os.getenv(env_name, default).strip().lower()
    if value not in allowed:
        log.warning("Ignoring %s=%r, expected one of %s", env_name, value, allowed)
        return default
    return value


def _float(env_name: str, default: float) -> float:
    raw = os.getenv(env_name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning("Ignoring %s=%r, not a number", env_name, raw)
        return default


def load_config(env_path: Optional[Path] = None) -> AppConfig:
    """Load config from .env file. Searches CWD then config dir."""
    search_paths = [
        env_path,
        Path.cwd() / ".env",
        _xdg_config_home() / "kapul" / ".env",
        Path.home() / ".env",
    ]
    for p in search_paths:
        if p and p.exists():
            load_dotenv(p)
            break

    defaults = AppConfig()
    default_proxy = ProxyConfig()
    data_dir = os.getenv("KAPUL_DATA_DIR")

    return AppConfig(
        data_dir=Path(data_dir).expanduser() if data_dir else defaults.data_dir,
        storage_backend=_choice(
            "KAPUL_STORAGE_BACKEND", STORAGE_BACKENDS, defaults.storage_backend
        ),
        delete_policy=_choice(
            "KAPUL_DELETE_POLICY", DELETE_POLICIES, defaults.delete_policy
        ),
        proxy=ProxyConfig(
            base_url=os.getenv("KAPUL_PROXY_URL", default_proxy.base_url),
            timeout=_float("KAPUL_AI_TIMEOUT", default_proxy.timeout),
        ),
    )
