"""
petsconnect.api.__main__ — Entry point for ``python -m petsconnect.api``
=========================================================================

Run with::

    python -m petsconnect.api

``API_HOST`` / ``API_PORT`` override the bind address.
"""

from __future__ import annotations

import logging
import os

import uvicorn
from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("petsconnect")


def main() -> None:
    """Bootstrap and serve the PetsConnect API."""
    load_dotenv()

    host = os.getenv("API_HOST", "127.0.0.1")
    port = int(os.getenv("API_PORT", "8000"))
    # Import after load_dotenv so JWT_SECRET / DATABASE_URL are visible.
    from petsconnect.api.deps import get_engine
    from petsconnect.api.main import app
    from petsconnect.database.engine import init_db

    init_db(get_engine())
    logger.info("Serving PetsConnect API on %s:%d", host, port)

    uvicorn.run(app, host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
