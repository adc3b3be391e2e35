"""Seed the admin account into the configured data directory."""
from __future__ import annotations

import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from voting_portal.core.config import get_settings
from voting_portal.core.logging import configure_logging
from voting_portal.services.container import build_services

logger = logging.getLogger(__name__)


def main() -> None:
    configure_logging()
    services = build_services(get_settings())
    result = services.credentials.seed_admin()
    if result.created:
        logger.info("Created admin %s", result.subject.identifier)
    else:
        logger.info("Admin %s already exists", result.subject.identifier)


if __name__ == "__main__":
    main()
