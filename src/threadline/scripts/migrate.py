# src/threadline/scripts/migrate.py
"""Apply Alembic migrations to the configured database."""
from __future__ import annotations

import os

from alembic import command
from alembic.config import Config

from threadline.core.settings import settings

MIGRATIONS_DIR = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "..", "..", "migrations")
)


def run_upgrade_head() -> None:
    cfg = Config(os.path.join(MIGRATIONS_DIR, "alembic.ini"))
    # env.py prefers ALEMBIC_URL; otherwise use the sync URL from settings
    cfg.set_main_option("sqlalchemy.url", os.getenv("ALEMBIC_URL") or settings.database_url_sync)
    cfg.set_main_option("script_location", MIGRATIONS_DIR)
    command.upgrade(cfg, "head")


if __name__ == "__main__":
    run_upgrade_head()
