import httpx
from flask import Blueprint, current_app, jsonify, request

from ..extensions import get_database
from ..services.discord_client import DiscordClient
from ..services.notifications import notify_new_message, notify_new_submission, service_name
from ..utils.forms import clean_chat_message, clean_contact, clean_review, query_int

bp = Blueprint("public_api", __name__)

MAX_TRACK_FIELD = 500


def _client_ip() -> str:
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr or "unknown"


def _fail(message: str, status: int = 400):
    return jsonify({"success": False, "error": message}), status


def _payload() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


# -----------------------------
# Contact form
# -----------------------------
@bp.post("/contact")
def submit_contact():
    clean, error = clean_contact(_payload())
    if error:
        return _fail(error)

    db = get_database()
    if clean["coupon"]:
        coupon = db.use_coupon(clean["coupon"])
        if coupon is None:
            return _fail("Invalid or expired coupon code.")
        clean["coupon"] = coupon["code"]

    entry = db.add_submission({**clean, "ip_address": _client_ip()})
    notify_new_submission(current_app.config, entry)
    current_app.logger.info(
        "New ticket #%s from %s (%s) for %s",
        entry["id"], entry["name"], entry["discord"], service_name(entry["service"]),
    )
    return jsonify({
        "success": True,
        "message": "Your message has been sent! We'll get back to you soon.",
        "ticket_id": entry["id"],
    }), 201


@bp.post("/track")
def track_page_view():
    body = _payload()

    def _field(key, default=""):
        value = body.get(key)
        return str(value)[:MAX_TRACK_FIELD] if value else default

    get_database().add_page_view({
        "page": _field("page", "/"),
        "referrer": _field("referrer"),
        "referral_code": _field("referral_code") or _field("ref"),
        "user_agent": request.headers.get("User-Agent", "")[:MAX_TRACK_FIELD],
        "ip_address": _client_ip(),
    })
    return jsonify({"success": True})


# -----------------------------
# Reviews / portfolio / blog / changelog
# -----------------------------
@bp.get("/reviews")
def list_reviews():
    return jsonify({"success": True, "reviews": get_database().get_reviews(approved_only=True)})


@bp.post("/reviews")
def submit_review():
    clean, error = clean_review(_payload())
    if error:
        return _fail(error)
    review = get_database().add_review(**clean)
    return jsonify({
        "success": True,
        "message": "Thanks! Your review will appear once approved.",
        "review": review,
    }), 201


@bp.get("/portfolio")
def list_portfolio():
    return jsonify({"success": True, "portfolio": get_database().get_portfolio()})


@bp.get("/blog")
def list_blog_posts():
    limit = query_int(request.args.get("limit"), 50, minimum=1, maximum=200)
    return jsonify({"success": True, "posts": get_database().get_blog_posts(limit)})


@bp.get("/blog/<post_id>")
def get_blog_post(post_id):
    post = get_database().get_blog_post(post_id)
    if post is None:
        return _fail("Not found.", 404)
    return jsonify({"success": True, "post": post})


@bp.get("/changelog")
def list_changelog():
    limit = query_int(request.args.get("limit"), 50, minimum=1, maximum=200)
    return jsonify({"success": True, "changelog": get_database().get_changelog(limit)})


# -----------------------------
# Coupons
# -----------------------------
@bp.post("/coupons/validate")
def validate_coupon():
    coupon = get_database().validate_coupon(_payload().get("code") or "")
    if coupon is None:
        return _fail("Invalid or expired coupon code.", 404)
    return jsonify({
        "success": True,
        "coupon": {"code": coupon["code"], "discount_percent": coupon.get("discount_percent", 0)},
    })


# -----------------------------
# Tickets (public status + chat)
# -----------------------------
@bp.get("/tickets/<ticket_id>")
def get_ticket(ticket_id):
    db = get_database()
    sub = db.get_submission(ticket_id)
    if sub is None:
        return _fail("Ticket not found.", 404)
    return jsonify({"success": True, "ticket": db.public_ticket(sub)})


@bp.get("/tickets/<ticket_id>/messages")
def list_ticket_messages(ticket_id):
    messages = get_database().get_messages(ticket_id)
    if messages is None:
        return _fail("Ticket not found.", 404)
    return jsonify({"success": True, "messages": messages})


@bp.post("/tickets/<ticket_id>/messages")
def post_ticket_message(ticket_id):
    clean, error = clean_chat_message(_payload())
    if error:
        return _fail(error)
    db = get_database()
    msg = db.add_message(ticket_id, "client", clean["text"])
    if msg is None:
        return _fail("Ticket not found.", 404)
    notify_new_message(current_app.config, db.get_submission(ticket_id), msg)
    return jsonify({"success": True, "message": msg}), 201


# -----------------------------
# Community widget proxy
# -----------------------------
@bp.get("/community")
def community_status():
    guild_id = current_app.config.get("DISCORD_GUILD_ID")
    if not guild_id:
        return _fail("Community widget not configured.", 404)
    try:
        widget = DiscordClient().fetch_widget(guild_id)
    except (httpx.HTTPError, ValueError) as e:
        current_app.logger.warning("Community widget fetch failed: %s", e)
        return _fail("Community status unavailable.", 502)
    return jsonify({"success": True, "community": widget})
