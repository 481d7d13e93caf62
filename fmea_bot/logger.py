import logging
import os
import sys

# Write to stderr (unbuffered, better for containers and serverless logs)
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "DEBUG").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)

# Suppress verbose pymongo DEBUG logs (topology, connection pool, etc.)
logging.getLogger("pymongo").setLevel(logging.INFO)
logging.getLogger("pymongo.topology").setLevel(logging.INFO)
logging.getLogger("pymongo.connection").setLevel(logging.INFO)
logging.getLogger("pymongo.serverSelection").setLevel(logging.INFO)
# httpx logs every request at INFO, including the bot token in the URL
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

logger = logging.getLogger("fmea_bot")
