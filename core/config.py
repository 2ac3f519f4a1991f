"""Centralized configuration for the Vigie digest bot."""

import os
import json
import logging
from typing import Any, Dict, List, Tuple
from zoneinfo import ZoneInfo

log = logging.getLogger("vigie.config")

# =========================
# Tokens & IDs (validated at startup via validate_required_env)
# =========================
OPENAI_API_KEY: str = os.environ.get("OPENAI_API_KEY", "")
OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
TELEGRAM_TOKEN: str = os.environ.get("TELEGRAM_TOKEN", "")
TELEGRAM_CHAT_ID: str = os.environ.get("TELEGRAM_CHAT_ID", "")
DISCORD_WEBHOOK_URL: str = os.environ.get("DISCORD_WEBHOOK_URL", "")

# =========================
# File paths
# =========================
SOURCES_FILE: str = os.getenv("SOURCES_FILE", "config/sources.json")
TARGETS_FILE: str = os.getenv("PUBLISH_TARGETS_FILE", "config/publish_targets.json")

# =========================
# Processing
# =========================
ENRICH_BATCH_SIZE: int = int(os.getenv("ENRICH_BATCH_SIZE", "5"))
ENRICH_BATCH_DELAY_SECONDS: float = float(os.getenv("ENRICH_BATCH_DELAY_SECONDS", "1"))
ANALYZE_DELAY_SECONDS: float = float(os.getenv("ANALYZE_DELAY_SECONDS", "1"))
# 0 = pas de timeout sur les appels au modele
ORACLE_TIMEOUT_SECONDS: float = float(os.getenv("ORACLE_TIMEOUT_SECONDS", "0"))
DEDUP_THRESHOLD: float = float(os.getenv("DEDUP_THRESHOLD", "0.8"))
DIGEST_TOP_N: int = int(os.getenv("DIGEST_TOP_N", "3"))
FACT_CHECK_SOURCES: List[str] = [
    s.strip() for s in os.getenv("FACT_CHECK_SOURCES", "reuters.com,apnews.com").split(",") if s.strip()
]

# =========================
# Collection
# =========================
COLLECT_WINDOW_HOURS: float = float(os.getenv("COLLECT_WINDOW_HOURS", "24"))
RSS_ITEMS_MAX: int = int(os.getenv("RSS_ITEMS_MAX", "30"))
WEBSITE_ITEMS_MAX: int = int(os.getenv("WEBSITE_ITEMS_MAX", "20"))
TELEGRAM_MESSAGES_MAX: int = int(os.getenv("TELEGRAM_MESSAGES_MAX", "100"))
RSS_FETCH_DELAY_SECONDS: float = float(os.getenv("RSS_FETCH_DELAY_SECONDS", "0.5"))
WEBSITE_FETCH_DELAY_SECONDS: float = float(os.getenv("WEBSITE_FETCH_DELAY_SECONDS", "2"))
CHANNEL_FETCH_DELAY_SECONDS: float = float(os.getenv("CHANNEL_FETCH_DELAY_SECONDS", "1"))
HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))
HTTP_USER_AGENT: str = os.getenv("HTTP_USER_AGENT", "Vigie-Digest/1.0")

# =========================
# Schedule
# =========================
TZ: ZoneInfo = ZoneInfo(os.getenv("BOT_TIMEZONE", "UTC"))
COLLECT_TIME: str = os.getenv("COLLECT_TIME", "06:00")
PUBLISH_TIME: str = os.getenv("PUBLISH_TIME", "08:00")

# =========================
# Monitoring
# =========================
FAILURE_ALERT_THRESHOLD: int = int(os.getenv("FAILURE_ALERT_THRESHOLD", "3"))

# =========================
# Publishing
# =========================
TELEGRAM_MESSAGE_MAX: int = 4096
DISCORD_EMBED_COLOR: int = 0x0B0F14

DEFAULT_SOURCES: Dict[str, Any] = {"rss": [], "websites": [], "telegram": {"channels": []}}
DEFAULT_TARGETS: Dict[str, Any] = {"enabled": ["telegram"], "telegram": {}, "discord": {}}


def validate_required_env() -> None:
    """Validate that required environment variables are set. Call at startup."""
    missing = []
    if not OPENAI_API_KEY:
        missing.append("OPENAI_API_KEY")
    if not TELEGRAM_TOKEN:
        missing.append("TELEGRAM_TOKEN")
    if not TELEGRAM_CHAT_ID:
        missing.append("TELEGRAM_CHAT_ID")
    if missing:
        raise EnvironmentError(
            f"Variables d'environnement requises manquantes: {', '.join(missing)}"
        )
    if ORACLE_TIMEOUT_SECONDS < 0:
        log.warning("ORACLE_TIMEOUT_SECONDS negatif, timeout desactive.")


def parse_hhmm(value: str) -> Tuple[int, int]:
    """Parse "HH:MM" into (hour, minute); unreadable parts become 0."""
    parts = (value or "").split(":")
    out = []
    for p in (parts + ["0", "0"])[:2]:
        try:
            out.append(int(p))
        except ValueError:
            out.append(0)
    return out[0], out[1]


def load_sources(path: str = SOURCES_FILE) -> Dict[str, Any]:
    """Load sources.json (rss feeds, websites, telegram channels) with safe defaults."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("sources doit etre un dict")
    except FileNotFoundError:
        log.warning("Fichier %s introuvable, aucune source.", path)
        return json.loads(json.dumps(DEFAULT_SOURCES))
    except (json.JSONDecodeError, ValueError) as e:
        log.error("Erreur lecture %s: %s", path, e)
        return json.loads(json.dumps(DEFAULT_SOURCES))

    rss = data.get("rss") or []
    # Un flux peut etre une simple URL ou {"url": ..., "name": ...}
    data["rss"] = [{"url": r} if isinstance(r, str) else r for r in rss if isinstance(r, (str, dict))]
    data["websites"] = [w for w in (data.get("websites") or []) if isinstance(w, dict)]
    telegram = data.get("telegram")
    if not isinstance(telegram, dict):
        telegram = {}
    channels = telegram.get("channels") or []
    telegram["channels"] = [
        {"username": c} if isinstance(c, str) else c for c in channels if isinstance(c, (str, dict))
    ]
    data["telegram"] = telegram
    return data


def load_targets(path: str = TARGETS_FILE) -> Dict[str, Any]:
    """Load publish_targets.json with safe defaults."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("publish_targets doit etre un dict")
        enabled = data.get("enabled", ["telegram"])
        # "enabled": "telegram" est accepte comme une liste d'un element
        if isinstance(enabled, str):
            enabled = [enabled]
        if not isinstance(enabled, list):
            log.warning("publish_targets: 'enabled' invalide (%r), valeur par defaut.", enabled)
            enabled = ["telegram"]
        data["enabled"] = [str(e).strip().lower() for e in enabled if str(e).strip()]
        data.setdefault("telegram", {})
        data.setdefault("discord", {})
        return data
    except FileNotFoundError:
        log.warning("Fichier %s introuvable, valeurs par defaut.", path)
        return json.loads(json.dumps(DEFAULT_TARGETS))
    except (json.JSONDecodeError, ValueError) as e:
        log.error("Erreur lecture %s: %s", path, e)
        return json.loads(json.dumps(DEFAULT_TARGETS))
