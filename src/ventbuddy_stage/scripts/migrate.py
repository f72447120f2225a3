# src/ventbuddy_stage/scripts/migrate.py
from __future__ import annotations

import argparse
import os

from alembic import command
from alembic.config import Config

from ventbuddy_stage.core.settings import settings

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", ".."))


def build_config() -> Config:
    """Return an Alembic config pointed at the project's migrations folder."""
    cfg = Config(os.path.join(PROJECT_ROOT, "alembic.ini"))
    cfg.set_main_option("script_location", os.path.join(PROJECT_ROOT, "migrations"))
    cfg.set_main_option("sqlalchemy.url", settings.database_url_sync)
    return cfg


def run_upgrade(revision: str = "head") -> None:
    command.upgrade(build_config(), revision)


def main() -> None:
    parser = argparse.ArgumentParser(description="Apply database migrations")
    parser.add_argument("revision", nargs="?", default="head", help="Target revision (default: head)")
    args = parser.parse_args()
    run_upgrade(args.revision)


if __name__ == "__main__":
    main()
