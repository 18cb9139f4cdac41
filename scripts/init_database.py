#!/usr/bin/env python3
"""
Database initialization script for Password Arena.

Creates the submissions, ban list and request log tables.
"""

import sys
import logging
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from arena.config.config_loader import get_config
from storage.arena_store import ArenaStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def init_database(config) -> None:
    """
    Create all tables.

    Args:
        config: Application configuration
    """
    logger.info("Initializing database...")

    store = ArenaStore.from_config(config.database)
    try:
        store.create_tables()
        logger.info("✓ Tables created successfully")
    finally:
        store.close()


def main():
    config = get_config()
    try:
        init_database(config)
    except Exception as e:
        logger.error(f"✗ Error initializing database: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
