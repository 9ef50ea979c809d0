from xml.sax.saxutils import escape

from flask import Blueprint, Response, current_app, jsonify

from ..extensions import get_database

bp = Blueprint("pages", __name__)

STATIC_PAGES = ["/", "/services", "/portfolio", "/reviews", "/blog", "/changelog", "/contact"]


@bp.get("/health")
def health():
    return jsonify({"success": True, "status": "ok"})


@bp.get("/sitemap.xml")
def sitemap():
    base = current_app.config["SITE_URL"].rstrip("/")
    urls = [(f"{base}{path}", None) for path in STATIC_PAGES]
    for post in get_database().get_blog_posts(limit=1000):
        urls.append((f"{base}/blog/{post['id']}", (post.get("created_at") or "")[:10] or None))

    lines = ['<?xml version="1.0" encoding="UTF-8"?>',
             '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">']
    for loc, lastmod in urls:
        lines.append("  <url>")
        lines.append(f"    <loc>{escape(loc)}</loc>")
        if lastmod:
            lines.append(f"    <lastmod>{escape(lastmod)}</lastmod>")
        lines.append("  </url>")
    lines.append("</urlset>")
    return Response("\n".join(lines) + "\n", mimetype="application/xml")
