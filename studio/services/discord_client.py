import httpx

DISCORD_API_BASE = "https://discord.com/api"


class DiscordClient:
    def __init__(self, webhook_url: str | None = None, timeout: float = 10):
        self.webhook_url = webhook_url
        self.timeout = timeout

    def send_webhook(self, payload: dict) -> bool:
        """POST a webhook message. Returns False when no webhook is configured."""
        if not self.webhook_url:
            return False
        with httpx.Client(timeout=self.timeout) as client:
            r = client.post(self.webhook_url, json=payload)
            r.raise_for_status()
        return True

    def fetch_widget(self, guild_id: str) -> dict:
        """Read the public server widget (name, presence count, invite link)."""
        url = f"{DISCORD_API_BASE}/guilds/{guild_id}/widget.json"
        with httpx.Client(timeout=self.timeout) as client:
            r = client.get(url)
            r.raise_for_status()
            data = r.json()
        return {
            "name": data.get("name"),
            "instant_invite": data.get("instant_invite"),
            "presence_count": data.get("presence_count", 0),
        }
