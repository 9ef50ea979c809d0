import json
import logging
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

log = logging.getLogger(__name__)

STATUSES = ("new", "reviewing", "in-progress", "testing", "completed", "other")
SENDERS = ("client", "admin")
CHANGELOG_TYPES = ("feature", "improvement", "fix")
MAX_PAGE_VIEWS = 10_000

# collection -> id counter, backfilled on load for older documents
COUNTERS = {
    "submissions": "nextId",
    "blogPosts": "nextBlogId",
    "reviews": "nextReviewId",
    "portfolio": "nextPortfolioId",
    "coupons": "nextCouponId",
    "changelog": "nextChangelogId",
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _coerce_id(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def normalize_tags(value) -> List[str]:
    if isinstance(value, str):
        raw = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        raw = list(value)
    else:
        raw = []
    out: List[str] = []
    for tag in raw:
        t = str(tag or "").strip()
        if t and t not in out:
            out.append(t)
    return out


def default_document() -> Dict[str, Any]:
    doc: Dict[str, Any] = {"pageViews": []}
    for collection, counter in COUNTERS.items():
        doc[collection] = []
        doc[counter] = 1
    return doc


class JsonDatabase:
    """The whole site database: one JSON document held in memory.

    Every mutation rewrites the full file. Lookups that miss return ``None``
    (or ``False`` for deletes) instead of raising.
    """

    def __init__(self, path):
        self.path = Path(path)
        self.data: Dict[str, Any] = default_document()
        self._lock = threading.RLock()
        self.load()

    # -----------------------------
    # Persistence
    # -----------------------------
    def load(self):
        with self._lock:
            if not self.path.exists():
                self.data = default_document()
                self.save()
                return
            try:
                with self.path.open("r", encoding="utf-8") as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("top-level JSON value is not an object")
            except (OSError, ValueError) as e:
                log.error("Failed to load database %s, starting fresh: %s", self.path, e)
                self.data = default_document()
                return
            self.data = self._migrate(data)

    @staticmethod
    def _migrate(data: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(data.get("pageViews"), list):
            data["pageViews"] = []
        for collection, counter in COUNTERS.items():
            if not isinstance(data.get(collection), list):
                data[collection] = []
            if not data.get(counter):
                ids = [r["id"] for r in data[collection] if isinstance(r, dict) and isinstance(r.get("id"), int)]
                data[counter] = max(ids, default=0) + 1
        return data

    def save(self):
        with self._lock:
            try:
                text = json.dumps(self.data, indent=2, ensure_ascii=False)
            except (TypeError, ValueError) as e:
                log.error("Failed to serialize database %s: %s", self.path, e)
                return
            # write beside the target and swap, so a failed write never truncates it
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with tmp.open("w", encoding="utf-8") as f:
                    f.write(text)
                os.replace(tmp, self.path)
            except OSError as e:
                log.error("Failed to save database %s: %s", self.path, e)

    # -----------------------------
    # Internal helpers
    # -----------------------------
    def _next_id(self, collection: str) -> int:
        counter = COUNTERS[collection]
        value = self.data[counter]
        self.data[counter] = value + 1
        return value

    def _find_index(self, collection: str, record_id) -> int:
        rid = _coerce_id(record_id)
        if rid is None:
            return -1
        for i, record in enumerate(self.data[collection]):
            if record.get("id") == rid:
                return i
        return -1

    def _find(self, collection: str, record_id) -> Optional[Dict[str, Any]]:
        index = self._find_index(collection, record_id)
        return self.data[collection][index] if index != -1 else None

    def _delete(self, collection: str, record_id) -> bool:
        with self._lock:
            index = self._find_index(collection, record_id)
            if index == -1:
                return False
            del self.data[collection][index]
            self.save()
            return True

    @staticmethod
    def _newest_first(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return sorted(records, key=lambda r: r.get("created_at") or "", reverse=True)

    # -----------------------------
    # Submissions
    # -----------------------------
    def add_submission(self, submission: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            entry = {"id": self._next_id("submissions")}
            entry.update((k, v) for k, v in submission.items() if k != "id")
            entry.update({
                "coupon": submission.get("coupon"),
                "referral": submission.get("referral"),
                "priority": submission.get("priority") is True,
                "files": submission["files"] if isinstance(submission.get("files"), list) else [],
                "status": "new",
                "notes": "",
                "client_message": "",
                "status_history": [],
                "messages": [],
                "created_at": _now_iso(),
            })
            self.data["submissions"].insert(0, entry)
            self.save()
            return entry

    def get_submissions(self, status: str | None = None, search: str | None = None,
                        limit: int = 50, offset: int = 0) -> Dict[str, Any]:
        results = list(self.data["submissions"])

        if status and status != "all":
            results = [s for s in results if s.get("status") == status]

        if search:
            q = search.lower()
            results = [
                s for s in results
                if q in (s.get("name") or "").lower()
                or q in (s.get("discord") or "").lower()
                or q in (s.get("message") or "").lower()
            ]

        total = len(results)
        offset = max(offset, 0)
        limit = max(limit, 0)
        return {"submissions": results[offset:offset + limit], "total": total}

    def get_all_submissions(self) -> List[Dict[str, Any]]:
        return list(self.data["submissions"])

    def get_submission(self, submission_id) -> Optional[Dict[str, Any]]:
        return self._find("submissions", submission_id)

    def update_submission(self, submission_id, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Apply only the keys present in ``updates``.

        A status history entry is recorded only when the status really changes.
        """
        with self._lock:
            sub = self._find("submissions", submission_id)
            if sub is None:
                return None
            old_status = sub.get("status")

            for field in ("status", "notes", "client_message", "priority"):
                if field in updates:
                    sub[field] = updates[field]
            if "files" in updates:
                files = updates["files"]
                sub["files"] = files if isinstance(files, list) else sub.get("files") or []

            now = _now_iso()
            sub["updated_at"] = now

            history = sub.setdefault("status_history", [])
            new_status = updates.get("status")
            if new_status and new_status != old_status:
                history.append({
                    "status": new_status,
                    "timestamp": now,
                    "message": updates.get("client_message") or None,
                })

            self.save()
            return sub

    def delete_submission(self, submission_id) -> bool:
        return self._delete("submissions", submission_id)

    # -----------------------------
    # Ticket chat
    # -----------------------------
    def add_message(self, submission_id, sender: str, text: str) -> Optional[Dict[str, Any]]:
        if sender not in SENDERS:
            return None
        with self._lock:
            sub = self._find("submissions", submission_id)
            if sub is None:
                return None
            messages = sub.setdefault("messages", [])
            now = _now_iso()
            msg = {
                # scoped to this ticket, not globally unique
                "id": len(messages) + 1,
                "sender": sender,
                "text": text.strip(),
                "timestamp": now,
            }
            messages.append(msg)
            sub["updated_at"] = now
            self.save()
            return msg

    def get_messages(self, submission_id) -> Optional[List[Dict[str, Any]]]:
        sub = self._find("submissions", submission_id)
        if sub is None:
            return None
        return list(sub.get("messages") or [])

    @staticmethod
    def public_ticket(sub: Dict[str, Any]) -> Dict[str, Any]:
        """Client-safe view of a submission: no notes, raw message, discord or ip."""
        return {
            "id": sub.get("id"),
            "name": sub.get("name"),
            "service": sub.get("service"),
            "status": sub.get("status"),
            "priority": sub.get("priority", False),
            "client_message": sub.get("client_message") or "",
            "status_history": list(sub.get("status_history") or []),
            "messages": list(sub.get("messages") or []),
            "files": list(sub.get("files") or []),
            "created_at": sub.get("created_at"),
            "updated_at": sub.get("updated_at"),
        }

    # -----------------------------
    # Blog posts
    # -----------------------------
    def add_blog_post(self, title: str, content: str, tags=None) -> Dict[str, Any]:
        with self._lock:
            post = {
                "id": self._next_id("blogPosts"),
                "title": title.strip(),
                "content": content.strip(),
                "tags": normalize_tags(tags),
                "created_at": _now_iso(),
            }
            self.data["blogPosts"].insert(0, post)
            self.save()
            return post

    def get_blog_posts(self, limit: int = 50) -> List[Dict[str, Any]]:
        return self.data["blogPosts"][:max(limit, 0)]

    def get_blog_post(self, post_id) -> Optional[Dict[str, Any]]:
        return self._find("blogPosts", post_id)

    def delete_blog_post(self, post_id) -> bool:
        return self._delete("blogPosts", post_id)

    # -----------------------------
    # Page views
    # -----------------------------
    def add_page_view(self, view: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            entry = {**view, "created_at": _now_iso()}
            views = self.data["pageViews"]
            views.append(entry)
            if len(views) > MAX_PAGE_VIEWS:
                del views[:len(views) - MAX_PAGE_VIEWS]
            self.save()
            return entry

    # -----------------------------
    # Reviews
    # -----------------------------
    def add_review(self, name: str = "", rating: int = 0, text: str = "", service: str = "") -> Dict[str, Any]:
        with self._lock:
            entry = {
                "id": self._next_id("reviews"),
                "name": name or "",
                "rating": rating if rating is not None else 0,
                "text": text or "",
                "service": service or "",
                "approved": False,
                "created_at": _now_iso(),
            }
            self.data["reviews"].insert(0, entry)
            self.save()
            return entry

    def get_reviews(self, approved_only: bool = True) -> List[Dict[str, Any]]:
        reviews = list(self.data["reviews"])
        if approved_only:
            reviews = [r for r in reviews if r.get("approved") is True]
        return self._newest_first(reviews)

    def approve_review(self, review_id) -> Optional[Dict[str, Any]]:
        with self._lock:
            review = self._find("reviews", review_id)
            if review is None:
                return None
            review["approved"] = True
            self.save()
            return review

    def delete_review(self, review_id) -> bool:
        return self._delete("reviews", review_id)

    # -----------------------------
    # Portfolio
    # -----------------------------
    def add_portfolio(self, title: str = "", description: str = "", image_url: str = "", tags=None) -> Dict[str, Any]:
        with self._lock:
            entry = {
                "id": self._next_id("portfolio"),
                "title": title or "",
                "description": description or "",
                "image_url": image_url or "",
                "tags": normalize_tags(tags),
                "created_at": _now_iso(),
            }
            self.data["portfolio"].insert(0, entry)
            self.save()
            return entry

    def get_portfolio(self) -> List[Dict[str, Any]]:
        return list(self.data["portfolio"])

    def delete_portfolio(self, item_id) -> bool:
        return self._delete("portfolio", item_id)

    # -----------------------------
    # Coupons
    # -----------------------------
    def add_coupon(self, code: str, discount_percent: int = 0, max_uses: int = 0) -> Dict[str, Any]:
        with self._lock:
            entry = {
                "id": self._next_id("coupons"),
                "code": (code or "").strip(),
                "discount_percent": discount_percent if discount_percent is not None else 0,
                "max_uses": max_uses if max_uses is not None else 0,
                "uses": 0,
                "active": True,
                "created_at": _now_iso(),
            }
            self.data["coupons"].append(entry)
            self.save()
            return entry

    def get_coupons(self) -> List[Dict[str, Any]]:
        return list(self.data["coupons"])

    def get_coupon_by_code(self, code: str) -> Optional[Dict[str, Any]]:
        c = (code or "").strip().lower()
        return next((x for x in self.data["coupons"] if (x.get("code") or "").lower() == c), None)

    def validate_coupon(self, code: str) -> Optional[Dict[str, Any]]:
        c = (code or "").strip().lower()
        if not c:
            return None
        # max_uses of 0 means the coupon can never be redeemed
        return next((
            x for x in self.data["coupons"]
            if (x.get("code") or "").lower() == c
            and x.get("active") is True
            and (x.get("uses") or 0) < (x.get("max_uses") or 0)
        ), None)

    def use_coupon(self, code: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            coupon = self.validate_coupon(code)
            if coupon is None:
                return None
            coupon["uses"] = (coupon.get("uses") or 0) + 1
            self.save()
            return coupon

    def toggle_coupon(self, coupon_id) -> Optional[Dict[str, Any]]:
        with self._lock:
            coupon = self._find("coupons", coupon_id)
            if coupon is None:
                return None
            coupon["active"] = not coupon.get("active")
            self.save()
            return coupon

    def delete_coupon(self, coupon_id) -> bool:
        return self._delete("coupons", coupon_id)

    # -----------------------------
    # Changelog
    # -----------------------------
    def add_changelog(self, title: str = "", content: str = "", type: str = "improvement") -> Dict[str, Any]:
        with self._lock:
            entry = {
                "id": self._next_id("changelog"),
                "title": title or "",
                "content": content or "",
                "type": type if type in CHANGELOG_TYPES else "improvement",
                "created_at": _now_iso(),
            }
            self.data["changelog"].insert(0, entry)
            self.save()
            return entry

    def get_changelog(self, limit: int = 50) -> List[Dict[str, Any]]:
        return self._newest_first(self.data["changelog"])[:max(limit, 0)]

    def delete_changelog(self, entry_id) -> bool:
        return self._delete("changelog", entry_id)
