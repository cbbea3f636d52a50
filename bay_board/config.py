from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_TIMEZONE = "Australia/Perth"


@dataclass(frozen=True)
class StoreConfig:
    base_url: str
    api_key: str


@dataclass(frozen=True)
class RuntimeConfig:
    artifact_root: Path
    timezone: str


def load_env(dotenv_path: str | Path | None = None) -> None:
    path = Path(dotenv_path) if dotenv_path else None
    if path and path.exists():
        load_dotenv(path)
        return
    load_dotenv()


def runtime_config() -> RuntimeConfig:
    artifact_root = Path(os.getenv("BAY_BOARD_ARTIFACT_DIR", "./artifacts")).expanduser().resolve()
    timezone = os.getenv("BAY_BOARD_TIMEZONE", "").strip() or DEFAULT_TIMEZONE
    artifact_root.mkdir(parents=True, exist_ok=True)
    return RuntimeConfig(artifact_root=artifact_root, timezone=timezone)


def get_store_config() -> StoreConfig:
    base_url = os.getenv("BAY_BOARD_STORE_URL", "").strip().rstrip("/")
    api_key = os.getenv("BAY_BOARD_STORE_KEY", "").strip()
    if not base_url or not api_key:
        missing = [
            name
            for name, value in (("BAY_BOARD_STORE_URL", base_url), ("BAY_BOARD_STORE_KEY", api_key))
            if not value
        ]
        raise ValueError(
            "Missing record store credentials. "
            f"Expected env vars BAY_BOARD_STORE_URL and BAY_BOARD_STORE_KEY (unset: {', '.join(missing)})"
        )
    return StoreConfig(base_url=base_url, api_key=api_key)
