"""Fire-and-forget notifications for new tickets, chat messages and status changes.

Each ``notify_*`` call builds its payloads up front and hands delivery to a
daemon thread, so a slow or failing webhook/SMTP server never delays or fails
the HTTP response. Failures are logged and not retried.
"""
import logging
import threading
from datetime import datetime, timezone

from .discord_client import DiscordClient
from .mailer import Mailer

log = logging.getLogger(__name__)

SERVICE_NAMES = {
    "server-build": "Full Server Build",
    "custom-script": "Custom Script",
    "ui-design": "UI/UX Design",
    "optimization": "Performance Optimization",
    "security": "Anti-Cheat & Security",
    "other": "Other",
}

EMBED_COLOR = 0xFF6B35


def service_name(service: str | None) -> str:
    return SERVICE_NAMES.get(service or "", service or "Other")


def _discord(config) -> DiscordClient:
    return DiscordClient(webhook_url=config.get("DISCORD_WEBHOOK_URL"))


def _mailer(config) -> Mailer:
    return Mailer(
        host=config.get("SMTP_HOST"),
        port=config.get("SMTP_PORT", 587),
        username=config.get("SMTP_USERNAME"),
        password=config.get("SMTP_PASSWORD"),
        sender=config.get("MAIL_FROM"),
    )


def _deliver(jobs):
    for name, fn, args in jobs:
        try:
            fn(*args)
        except Exception as e:
            log.warning("Notification %s failed: %s", name, e)


def _dispatch(jobs, run_async: bool = True):
    if not jobs:
        return None
    if not run_async:
        _deliver(jobs)
        return None
    t = threading.Thread(target=_deliver, args=(jobs,), daemon=True, name="notify")
    t.start()
    return t


def _embed(title: str, fields: list[dict], config) -> dict:
    return {
        "username": f"{config.get('SITE_NAME') or 'Site'} Bot",
        "embeds": [{
            "title": title,
            "color": EMBED_COLOR,
            "fields": fields,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }],
    }


def notify_new_submission(config, sub: dict, run_async: bool = True):
    fields = [
        {"name": "Name", "value": sub.get("name") or "-", "inline": True},
        {"name": "Discord", "value": sub.get("discord") or "-", "inline": True},
        {"name": "Service", "value": service_name(sub.get("service")), "inline": True},
        {"name": "Message", "value": (sub.get("message") or "-")[:1024]},
        {"name": "Ticket", "value": f"#{sub.get('id')}", "inline": True},
    ]
    if sub.get("coupon"):
        fields.append({"name": "Coupon", "value": sub["coupon"], "inline": True})

    jobs = []
    discord = _discord(config)
    if discord.webhook_url:
        jobs.append(("webhook", discord.send_webhook, (_embed("New Project Inquiry", fields, config),)))
    mailer = _mailer(config)
    to = config.get("NOTIFY_EMAIL")
    if mailer.configured and to:
        body = (
            f"New ticket #{sub.get('id')}\n\n"
            f"Name: {sub.get('name')}\n"
            f"Discord: {sub.get('discord')}\n"
            f"Service: {service_name(sub.get('service'))}\n\n"
            f"{sub.get('message') or ''}\n"
        )
        jobs.append(("email", mailer.send, (to, f"New ticket #{sub.get('id')} from {sub.get('name')}", body)))
    return _dispatch(jobs, run_async)


def notify_new_message(config, sub: dict, msg: dict, run_async: bool = True):
    discord = _discord(config)
    if not discord.webhook_url:
        return None
    who = "Client" if msg.get("sender") == "client" else "Admin"
    fields = [
        {"name": "Ticket", "value": f"#{sub.get('id')}", "inline": True},
        {"name": "From", "value": who, "inline": True},
        {"name": "Message", "value": (msg.get("text") or "-")[:1024]},
    ]
    payload = _embed(f"New chat message on #{sub.get('id')}", fields, config)
    return _dispatch([("webhook", discord.send_webhook, (payload,))], run_async)


def notify_status_change(config, sub: dict, old_status: str | None, run_async: bool = True):
    mailer = _mailer(config)
    to = config.get("NOTIFY_EMAIL")
    if not (mailer.configured and to):
        return None
    subject = f"Ticket #{sub.get('id')} is now {sub.get('status')}"
    body = f"Ticket #{sub.get('id')} ({sub.get('name')}) moved from {old_status} to {sub.get('status')}.\n"
    if sub.get("client_message"):
        body += f"\nMessage to client:\n{sub['client_message']}\n"
    return _dispatch([("email", mailer.send, (to, subject, body))], run_async)
