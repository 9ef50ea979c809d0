"""Request payload validation.

Each ``clean_*`` function returns ``(clean, error)``: on success ``error`` is
``None``; otherwise ``clean`` is ``None`` and ``error`` is a message safe to
show to the user.
"""
from __future__ import annotations

from ..storage.json_database import CHANGELOG_TYPES, STATUSES, normalize_tags

MAX_NAME = 100
MAX_MESSAGE = 2000
MAX_CODE = 50
MAX_REVIEW_TEXT = 1000
MAX_TITLE = 200
MAX_CONTENT = 20000


def _text(payload: dict, key: str) -> str:
    value = payload.get(key)
    return value.strip() if isinstance(value, str) else ""


def _int(value) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def clean_contact(payload: dict):
    clean = {k: _text(payload, k) for k in ("name", "discord", "service", "message")}
    if not all(clean.values()):
        return None, "All fields are required."
    if (len(clean["name"]) > MAX_NAME or len(clean["discord"]) > MAX_NAME
            or len(clean["message"]) > MAX_MESSAGE or len(clean["service"]) > MAX_CODE):
        return None, "Input too long."
    for key in ("coupon", "referral"):
        value = _text(payload, key)
        if len(value) > MAX_CODE:
            return None, "Input too long."
        clean[key] = value or None
    return clean, None


def clean_review(payload: dict):
    name = _text(payload, "name")
    text = _text(payload, "text")
    if not name or not text:
        return None, "Name and review text are required."
    if len(name) > MAX_NAME or len(text) > MAX_REVIEW_TEXT:
        return None, "Input too long."
    rating = _int(payload.get("rating"))
    if rating is None or not 1 <= rating <= 5:
        return None, "Rating must be between 1 and 5."
    return {"name": name, "rating": rating, "text": text, "service": _text(payload, "service")[:MAX_CODE]}, None


def clean_blog_post(payload: dict):
    title = _text(payload, "title")
    content = _text(payload, "content")
    if not title or not content:
        return None, "Title and content are required."
    if len(title) > MAX_TITLE or len(content) > MAX_CONTENT:
        return None, "Input too long."
    return {"title": title, "content": content, "tags": normalize_tags(payload.get("tags"))}, None


def clean_portfolio(payload: dict):
    title = _text(payload, "title")
    if not title:
        return None, "Title is required."
    if len(title) > MAX_TITLE:
        return None, "Input too long."
    return {
        "title": title,
        "description": _text(payload, "description"),
        "image_url": _text(payload, "image_url"),
        "tags": normalize_tags(payload.get("tags")),
    }, None


def clean_coupon(payload: dict):
    code = _text(payload, "code")
    if not code:
        return None, "Coupon code is required."
    if len(code) > MAX_CODE:
        return None, "Input too long."
    discount = _int(payload.get("discount_percent"))
    if discount is None or not 1 <= discount <= 100:
        return None, "Discount must be between 1 and 100 percent."
    max_uses = _int(payload.get("max_uses"))
    if max_uses is None or max_uses < 0:
        return None, "Max uses must be zero or more."
    return {"code": code, "discount_percent": discount, "max_uses": max_uses}, None


def clean_changelog(payload: dict):
    title = _text(payload, "title")
    if not title:
        return None, "Title is required."
    if len(title) > MAX_TITLE:
        return None, "Input too long."
    kind = _text(payload, "type")
    return {
        "title": title,
        "content": _text(payload, "content")[:MAX_CONTENT],
        "type": kind if kind in CHANGELOG_TYPES else "improvement",
    }, None


def clean_submission_update(payload: dict):
    """Keep only the editable fields that are present in the payload."""
    updates = {}
    if "status" in payload:
        if payload["status"] not in STATUSES:
            return None, f"Status must be one of: {', '.join(STATUSES)}."
        updates["status"] = payload["status"]
    for key in ("notes", "client_message"):
        if key in payload:
            value = payload[key]
            if value is not None and not isinstance(value, str):
                return None, f"{key} must be text."
            updates[key] = (value or "").strip()[:MAX_MESSAGE]
    if "priority" in payload:
        if not isinstance(payload["priority"], bool):
            return None, "priority must be true or false."
        updates["priority"] = payload["priority"]
    if "files" in payload:
        files = payload["files"]
        if not isinstance(files, list) or not all(isinstance(f, str) for f in files):
            return None, "files must be a list of file references."
        updates["files"] = [f.strip() for f in files if f.strip()]
    return updates, None


def clean_chat_message(payload: dict):
    text = _text(payload, "text")
    if not text:
        return None, "Message text is required."
    if len(text) > MAX_MESSAGE:
        return None, "Input too long."
    return {"text": text}, None


def query_int(value, default: int, minimum: int = 0, maximum: int | None = None) -> int:
    n = _int(value)
    if n is None or n < minimum:
        return default
    return min(n, maximum) if maximum is not None else n
