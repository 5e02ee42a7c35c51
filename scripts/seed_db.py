from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from tutoring_center.container import build_container
from tutoring_center.seed import seed_demo_data

logger = logging.getLogger("seed_db")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    settings = importlib.import_module(get_settings_module())
    if str(getattr(settings, "STORE_BACKEND", "memory")).lower() != "mysql":
        logger.warning("STORE_BACKEND is not mysql; seeded data would be lost on exit")
        return

    container = build_container(settings)
    if seed_demo_data(container):
        logger.info("Demo data written")


if __name__ == "__main__":
    main()
