import re
import html
import json
import hashlib
from typing import Any, Dict, Optional
from urllib.parse import urlparse, parse_qsl, urlencode, urlunparse

from bs4 import BeautifulSoup

CATEGORY_EMOJIS: Dict[str, str] = {
    "world": "🌍",
    "politics": "🏛️",
    "technology": "💻",
    "business": "💼",
    "science": "🔬",
    "health": "🏥",
    "sports": "⚽",
    "entertainment": "🎬",
    "other": "📌",
}


def truncate_text(text: str, limit: int) -> str:
    text = text or ""
    if len(text) > limit:
        return text[: max(0, limit - 3)] + "..."
    return text


def category_emoji(category: str) -> str:
    return CATEGORY_EMOJIS.get((category or "").lower(), "📌")


def content_hash(text: str) -> str:
    return hashlib.md5((text or "").encode("utf-8")).hexdigest()


def short_hash(text: str, length: int = 8) -> str:
    return content_hash(text)[:length]


def strip_html_to_text(raw_html: str) -> str:
    raw_html = raw_html or ""
    text = BeautifulSoup(raw_html, "html.parser").get_text(" ")
    text = html.unescape(text)
    return re.sub(r"\s+", " ", text).strip()


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Return the first {...} block of a model answer parsed as a dict, or None."""
    text = text or ""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        data = json.loads(text[start:end + 1])
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def add_utm(url: str, source: str, medium: str = "social", campaign: str = "digest") -> str:
    try:
        u = urlparse(url)
        q = dict(parse_qsl(u.query, keep_blank_values=True))
        q.setdefault("utm_source", source)
        q.setdefault("utm_medium", medium)
        q.setdefault("utm_campaign", campaign)
        new_query = urlencode(q, doseq=True)
        return urlunparse((u.scheme, u.netloc, u.path, u.params, new_query, u.fragment))
    except Exception:
        return url
