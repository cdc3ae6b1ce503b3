"""
Environment variable loading for ModGuard.

- PERSPECTIVE_API_KEY, HUGGINGFACE_API_KEY, GOOGLE_CLOUD_API_KEY: vendor credentials.
- AZURE_TEXT_ANALYTICS_KEY / AZURE_TEXT_ANALYTICS_ENDPOINT: Azure sentiment endpoint.
- MODGUARD_CONFIG_PATH: optional JSON file overriding sources and weight profiles.
- MODGUARD_DISABLED_SOURCES: comma-separated source names disabled at startup.
- Loads .env from project root when available.

A missing credential never raises: the matching source is simply not built.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is backend_modguard/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

CREDENTIAL_ENV_VARS: tuple[str, ...] = (
    "PERSPECTIVE_API_KEY",
    "HUGGINGFACE_API_KEY",
    "GOOGLE_CLOUD_API_KEY",
    "AZURE_TEXT_ANALYTICS_KEY",
)


def load_modguard_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides the process env."""
    load_dotenv(_ENV_PATH, override=False)


def get_credential(env_var: str | None) -> str | None:
    """
    Return the stripped value of env_var, or None when unset or blank.
    A source without a credential_env always counts as credentialed.
    """
    if not env_var:
        return None
    load_modguard_env()
    value = (os.getenv(env_var) or "").strip()
    return value or None


def has_credential(env_var: str | None) -> bool:
    if not env_var:
        return True
    return get_credential(env_var) is not None


def get_azure_endpoint() -> str | None:
    load_modguard_env()
    endpoint = (os.getenv("AZURE_TEXT_ANALYTICS_ENDPOINT") or "").strip().rstrip("/")
    return endpoint or None


def get_config_path() -> Path | None:
    """Return MODGUARD_CONFIG_PATH as a Path, or None when unset."""
    load_modguard_env()
    raw = (os.getenv("MODGUARD_CONFIG_PATH") or "").strip()
    return Path(raw) if raw else None


def get_disabled_sources() -> list[str]:
    """Parse MODGUARD_DISABLED_SOURCES ("azure, google_cloud") into a list of names."""
    load_modguard_env()
    raw = os.getenv("MODGUARD_DISABLED_SOURCES") or ""
    return [name.strip() for name in raw.split(",") if name.strip()]


def mask_secret(value: str | None) -> str:
    if not value:
        return "unset"
    if len(value) <= 8:
        return "***"
    return value[:4] + "***"


def print_modguard_startup(script_name: str) -> None:
    """Print which credentials are configured (masked) at process start."""
    load_modguard_env()
    parts = [f"{var}={mask_secret(get_credential(var))}" for var in CREDENTIAL_ENV_VARS]
    disabled = ",".join(get_disabled_sources()) or "none"
    print(f"[modguard] {script_name} | {' | '.join(parts)} | disabled={disabled}")
