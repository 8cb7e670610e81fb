#!/usr/bin/env python3
"""
Database initialization script for the School Result Portal
Run this script to set up the database with initial data
"""

import argparse
import logging

from app import create_app
from database import reset_database

logger = logging.getLogger(__name__)

def main():
    """Create tables (done by create_app) or reset the database with --reset"""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument('--reset', action='store_true', help='drop and recreate every table')
    args = parser.parse_args()

    app = create_app()

    if args.reset:
        print("WARNING: This will delete all existing data!")
        confirm = input("Are you sure you want to reset the database? (yes/no): ")
        if confirm.lower() == 'yes':
            reset_database(app)
        else:
            logger.info("Database reset cancelled.")
    else:
        logger.info("Database ready at %s", app.config['SQLALCHEMY_DATABASE_URI'])

if __name__ == '__main__':
    main()
