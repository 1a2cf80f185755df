"""
propline/config.py — Propline
==============================
Runtime configuration and logging setup.

Keys are read from the environment first, then Streamlit secrets (for
Streamlit Cloud deployments). NEVER hardcode API keys.

The resolved AppConfig is passed explicitly into collaborator calls; there is
no module-level API key.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_BOOKMAKER: str = "draftkings"
DEFAULT_MARKET: str = "player_points"
DEFAULT_GEMINI_MODEL: str = "gemini-2.0-flash"
DEFAULT_TIMEOUT: float = 15.0
DEFAULT_LOG_DIR: str = "logs"

LOG_FORMAT: str = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


@dataclass(frozen=True)
class AppConfig:
    odds_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    default_bookmaker: str = DEFAULT_BOOKMAKER
    default_market: str = DEFAULT_MARKET
    request_timeout: float = DEFAULT_TIMEOUT
    log_dir: str = DEFAULT_LOG_DIR

    @property
    def insights_enabled(self) -> bool:
        return bool(self.gemini_api_key)


def secret(name: str, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """
    Look up a secret: environment variable first, then Streamlit secrets.

    Returns None if not found — callers must handle gracefully.
    """
    env = os.environ if environ is None else environ
    value = env.get(name)
    if value:
        return value

    # Streamlit secrets fallback (only import if streamlit is available)
    try:
        import streamlit as st
        if name in st.secrets:
            return st.secrets[name]
    except (ImportError, FileNotFoundError, KeyError):
        pass
    except Exception as exc:  # noqa: BLE001
        logger.debug("Streamlit secrets unavailable for %s: %s", name, exc)

    return None


def _timeout(raw: Optional[str]) -> float:
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid PROPLINE_TIMEOUT %r, using %.0fs", raw, DEFAULT_TIMEOUT)
        return DEFAULT_TIMEOUT
    if value <= 0:
        logger.warning("Non-positive PROPLINE_TIMEOUT %r, using %.0fs", raw, DEFAULT_TIMEOUT)
        return DEFAULT_TIMEOUT
    return value


def load_config(environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """
    Build AppConfig from environment variables.

    Recognized: ODDS_API_KEY, GEMINI_API_KEY, GEMINI_MODEL,
    PROPLINE_BOOKMAKER, PROPLINE_MARKET, PROPLINE_TIMEOUT, PROPLINE_LOG_DIR.
    """
    env = os.environ if environ is None else environ
    return AppConfig(
        odds_api_key=secret("ODDS_API_KEY", env),
        gemini_api_key=secret("GEMINI_API_KEY", env),
        gemini_model=env.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
        default_bookmaker=env.get("PROPLINE_BOOKMAKER") or DEFAULT_BOOKMAKER,
        default_market=env.get("PROPLINE_MARKET") or DEFAULT_MARKET,
        request_timeout=_timeout(env.get("PROPLINE_TIMEOUT")),
        log_dir=env.get("PROPLINE_LOG_DIR") or DEFAULT_LOG_DIR,
    )


def configure_logging(log_dir: str, level: int = logging.INFO) -> None:
    """Log to <log_dir>/error.log and stderr."""
    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(path / "error.log"),
            logging.StreamHandler(),
        ],
    )
