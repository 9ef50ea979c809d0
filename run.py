import logging
import os

from studio import create_app
from studio.config import DevConfig, ProdConfig

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

debug = os.getenv("DEBUG", "false").strip().lower() in {"1", "true", "yes", "on"}
app = create_app(DevConfig if debug else ProdConfig)

if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "3000"))
    app.logger.info("JSON database ready (%s)", app.config["DATABASE_PATH"])
    app.logger.info("Discord webhook: %s", "configured" if app.config.get("DISCORD_WEBHOOK_URL") else "not set")
    app.run(host=host, port=port, debug=debug)
