#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Script to create MongoDB indexes for the case store.
"""

import sys
import os
import logging

# Add the parent directory to the path so we can import from api
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Settings
from domain.exceptions import StorageError
from services.mongodb import MongoCaseStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def main() -> int:
    """Create MongoDB indexes."""
    settings = Settings.from_env()
    store = MongoCaseStore.from_settings(settings)

    try:
        logger.info("Starting MongoDB index creation...")

        health = store.health_check()
        if health['status'] != 'healthy':
            logger.error(f"MongoDB is not healthy: {health}")
            return 1

        logger.info(f"Connected to MongoDB - Database: {health['database']}")
        store.create_indexes()
        logger.info("MongoDB indexes created successfully!")
        return 0

    except StorageError as e:
        logger.error(f"Failed to create indexes: {e}")
        return 1
    finally:
        store.close_connection()


if __name__ == "__main__":
    sys.exit(main())
