import csv
import io
from datetime import datetime, timezone

from flask import Blueprint, Response, current_app, jsonify, request

from ..extensions import get_database
from ..services.notifications import notify_new_message, notify_status_change
from ..utils.analytics import get_analytics, get_stats
from ..utils.auth import admin_required, check_admin
from ..utils.forms import (
    clean_blog_post,
    clean_changelog,
    clean_chat_message,
    clean_coupon,
    clean_portfolio,
    clean_submission_update,
    query_int,
)

bp = Blueprint("admin_api", __name__)

EXPORT_COLUMNS = [
    "id", "created_at", "updated_at", "name", "discord", "service", "status", "priority",
    "coupon", "referral", "message", "notes", "client_message", "ip_address",
]


def _fail(message: str, status: int = 400):
    return jsonify({"success": False, "error": message}), status


def _payload() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _deleted(ok: bool):
    if not ok:
        return _fail("Not found.", 404)
    return jsonify({"success": True})


@bp.post("/login")
def login():
    body = _payload()
    if check_admin(body.get("username") or "", body.get("password") or ""):
        return jsonify({"success": True})
    current_app.logger.warning("Failed admin login from %s", request.remote_addr)
    return _fail("Invalid credentials.", 401)


# -----------------------------
# Submissions
# -----------------------------
@bp.get("/submissions")
@admin_required
def list_submissions():
    result = get_database().get_submissions(
        status=request.args.get("status"),
        search=request.args.get("search"),
        limit=query_int(request.args.get("limit"), 50, minimum=1, maximum=500),
        offset=query_int(request.args.get("offset"), 0),
    )
    return jsonify({"success": True, **result})


@bp.get("/submissions/<submission_id>")
@admin_required
def get_submission(submission_id):
    sub = get_database().get_submission(submission_id)
    if sub is None:
        return _fail("Not found.", 404)
    return jsonify({"success": True, "submission": sub})


@bp.patch("/submissions/<submission_id>")
@admin_required
def update_submission(submission_id):
    updates, error = clean_submission_update(_payload())
    if error:
        return _fail(error)

    db = get_database()
    current = db.get_submission(submission_id)
    if current is None:
        return _fail("Not found.", 404)
    old_status = current.get("status")

    updated = db.update_submission(submission_id, updates)
    if updated is None:
        return _fail("Not found.", 404)
    if updated.get("status") != old_status:
        notify_status_change(current_app.config, updated, old_status)
    return jsonify({"success": True, "submission": updated})


@bp.delete("/submissions/<submission_id>")
@admin_required
def delete_submission(submission_id):
    return _deleted(get_database().delete_submission(submission_id))


@bp.post("/submissions/<submission_id>/messages")
@admin_required
def reply_to_submission(submission_id):
    clean, error = clean_chat_message(_payload())
    if error:
        return _fail(error)
    db = get_database()
    msg = db.add_message(submission_id, "admin", clean["text"])
    if msg is None:
        return _fail("Not found.", 404)
    notify_new_message(current_app.config, db.get_submission(submission_id), msg)
    return jsonify({"success": True, "message": msg}), 201


@bp.get("/export.csv")
@admin_required
def export_submissions():
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=EXPORT_COLUMNS, extrasaction="ignore")
    writer.writeheader()
    for sub in get_database().get_all_submissions():
        writer.writerow({col: sub.get(col, "") for col in EXPORT_COLUMNS})

    stamp = datetime.now(timezone.utc).strftime("%Y%m%d")
    return Response(
        buf.getvalue(),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename=submissions-{stamp}.csv"},
    )


# -----------------------------
# Dashboard
# -----------------------------
@bp.get("/stats")
@admin_required
def stats():
    return jsonify({"success": True, "stats": get_stats(get_database())})


@bp.get("/analytics")
@admin_required
def analytics():
    return jsonify({"success": True, "analytics": get_analytics(get_database())})


# -----------------------------
# Blog
# -----------------------------
@bp.get("/blog")
@admin_required
def list_blog_posts():
    return jsonify({"success": True, "posts": get_database().get_blog_posts(limit=1000)})


@bp.post("/blog")
@admin_required
def create_blog_post():
    clean, error = clean_blog_post(_payload())
    if error:
        return _fail(error)
    return jsonify({"success": True, "post": get_database().add_blog_post(**clean)}), 201


@bp.delete("/blog/<post_id>")
@admin_required
def delete_blog_post(post_id):
    return _deleted(get_database().delete_blog_post(post_id))


# -----------------------------
# Reviews
# -----------------------------
@bp.get("/reviews")
@admin_required
def list_all_reviews():
    return jsonify({"success": True, "reviews": get_database().get_reviews(approved_only=False)})


@bp.post("/reviews/<review_id>/approve")
@admin_required
def approve_review(review_id):
    review = get_database().approve_review(review_id)
    if review is None:
        return _fail("Not found.", 404)
    return jsonify({"success": True, "review": review})


@bp.delete("/reviews/<review_id>")
@admin_required
def delete_review(review_id):
    return _deleted(get_database().delete_review(review_id))


# -----------------------------
# Portfolio
# -----------------------------
@bp.post("/portfolio")
@admin_required
def create_portfolio_item():
    clean, error = clean_portfolio(_payload())
    if error:
        return _fail(error)
    return jsonify({"success": True, "item": get_database().add_portfolio(**clean)}), 201


@bp.delete("/portfolio/<item_id>")
@admin_required
def delete_portfolio_item(item_id):
    return _deleted(get_database().delete_portfolio(item_id))


# -----------------------------
# Coupons
# -----------------------------
@bp.get("/coupons")
@admin_required
def list_coupons():
    return jsonify({"success": True, "coupons": get_database().get_coupons()})


@bp.post("/coupons")
@admin_required
def create_coupon():
    clean, error = clean_coupon(_payload())
    if error:
        return _fail(error)
    db = get_database()
    if db.get_coupon_by_code(clean["code"]) is not None:
        return _fail("A coupon with that code already exists.", 409)
    return jsonify({"success": True, "coupon": db.add_coupon(**clean)}), 201


@bp.post("/coupons/<coupon_id>/toggle")
@admin_required
def toggle_coupon(coupon_id):
    coupon = get_database().toggle_coupon(coupon_id)
    if coupon is None:
        return _fail("Not found.", 404)
    return jsonify({"success": True, "coupon": coupon})


@bp.delete("/coupons/<coupon_id>")
@admin_required
def delete_coupon(coupon_id):
    return _deleted(get_database().delete_coupon(coupon_id))


# -----------------------------
# Changelog
# -----------------------------
@bp.post("/changelog")
@admin_required
def create_changelog_entry():
    clean, error = clean_changelog(_payload())
    if error:
        return _fail(error)
    return jsonify({"success": True, "entry": get_database().add_changelog(**clean)}), 201


@bp.delete("/changelog/<entry_id>")
@admin_required
def delete_changelog_entry(entry_id):
    return _deleted(get_database().delete_changelog(entry_id))
