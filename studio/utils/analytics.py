"""Dashboard statistics and traffic analytics.

Everything here is recomputed from the in-memory document on each call;
nothing is cached and nothing is written back.
"""
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

from ..storage.json_database import STATUSES, JsonDatabase

MOBILE_RE = re.compile(r"android|webos|iphone|ipad|ipod|blackberry|iemobile|opera mini|mobile", re.IGNORECASE)
BROWSERS = ("Chrome", "Firefox", "Safari", "Edge", "Other")
TOP_REFERRERS = 10


def _utc_now(now: datetime | None) -> datetime:
    return (now or datetime.now(timezone.utc)).astimezone(timezone.utc)


def _parse_timestamp(value) -> datetime | None:
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None


def _trailing_days(now: datetime, days: int) -> list[str]:
    return [(now - timedelta(days=i)).date().isoformat() for i in range(days - 1, -1, -1)]


def _count_by_day(records: list[dict], key: str, now: datetime, days: int) -> list[dict]:
    out = []
    for date_str in _trailing_days(now, days):
        count = sum(1 for r in records if str(r.get(key) or "").startswith(date_str))
        out.append({"date": date_str, "count": count})
    return out


def classify_browser(user_agent: str | None) -> str:
    # Order matters: Chromium-based Edge also advertises Chrome and Safari.
    ua = (user_agent or "").lower()
    if "edg/" in ua or "edge" in ua:
        return "Edge"
    if "chrome" in ua and "edg" not in ua:
        return "Chrome"
    if "firefox" in ua or "fxios" in ua:
        return "Firefox"
    if "safari" in ua and "chrome" not in ua:
        return "Safari"
    return "Other"


def is_mobile(user_agent: str | None) -> bool:
    return bool(MOBILE_RE.search(user_agent or ""))


def referrer_key(view: dict) -> str:
    key = str(view.get("referrer") or view.get("referral_code") or "direct").strip()
    return key or "direct"


def get_stats(database: JsonDatabase, now: datetime | None = None) -> dict:
    now = _utc_now(now)
    subs = database.data["submissions"]
    views = database.data["pageViews"]
    today = now.date().isoformat()

    by_status = {status: 0 for status in STATUSES}
    for s in subs:
        status = s.get("status")
        if status in by_status:
            by_status[status] += 1

    service_counts: dict[str, int] = {}
    for s in subs:
        service = s.get("service") or "other"
        service_counts[service] = service_counts.get(service, 0) + 1
    by_service = sorted(
        ({"service": service, "count": count} for service, count in service_counts.items()),
        key=lambda x: x["count"],
        reverse=True,
    )

    return {
        "total_submissions": len(subs),
        "new_submissions": by_status["new"],
        "reviewing": by_status["reviewing"],
        "in_progress": by_status["in-progress"],
        "testing": by_status["testing"],
        "completed": by_status["completed"],
        "by_status": by_status,
        "today_views": sum(1 for v in views if str(v.get("created_at") or "").startswith(today)),
        "total_views": len(views),
        "recent_submissions": subs[:5],
        "by_service": by_service,
        "daily_submissions": _count_by_day(subs, "created_at", now, 7),
        "total_reviews": len(database.data["reviews"]),
        "total_portfolio": len(database.data["portfolio"]),
        "active_coupons": sum(1 for c in database.data["coupons"] if c.get("active")),
        "total_changelog": len(database.data["changelog"]),
    }


def get_analytics(database: JsonDatabase, now: datetime | None = None) -> dict:
    now = _utc_now(now)
    views = database.data["pageViews"]

    referrer_counts: dict[str, int] = {}
    browser_counts = {name: 0 for name in BROWSERS}
    device_counts = {"mobile": 0, "desktop": 0}
    hourly = [0] * 24

    for v in views:
        ref = referrer_key(v)
        referrer_counts[ref] = referrer_counts.get(ref, 0) + 1

        ua = v.get("user_agent")
        browser_counts[classify_browser(ua)] += 1
        device_counts["mobile" if is_mobile(ua) else "desktop"] += 1

        ts = _parse_timestamp(v.get("created_at"))
        if ts is not None:
            # naive timestamps are taken as local time
            hourly[ts.astimezone().hour] += 1

    referrers = sorted(
        ({"referrer": ref, "count": count} for ref, count in referrer_counts.items()),
        key=lambda x: x["count"],
        reverse=True,
    )[:TOP_REFERRERS]

    return {
        "referrer_breakdown": referrers,
        "browser_breakdown": [{"browser": b, "count": c} for b, c in browser_counts.items()],
        "device_breakdown": [{"device": d, "count": c} for d, c in device_counts.items()],
        "hourly_traffic": hourly,
        "views_by_day": _count_by_day(views, "created_at", now, 30),
    }
