#!/usr/bin/env python3
"""
Run script for the asset register
"""

import argparse
import os
import sys
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from asset_register import create_app  # noqa: E402
from asset_register.build import build_database  # noqa: E402
from asset_register.logger import get_logger  # noqa: E402

logger = get_logger("asset_register.run")


def parse_arguments():
    parser = argparse.ArgumentParser(description='Asset Register')
    parser.add_argument('--build-only', action='store_true',
                        help='Create tables and critical data, then exit without starting the server')
    parser.add_argument('--seed-demo-data', action='store_true',
                        help='Insert demo units, users and assets')
    return parser.parse_args()


if __name__ == '__main__':
    args = parse_arguments()
    app = create_app()

    build_database(app, seed_demo_data=args.seed_demo_data)

    if args.build_only:
        logger.debug("Build completed. Exiting without starting web server.")
        sys.exit(0)

    # FLASK_DEBUG: Enable/disable debug mode (default: False for security)
    debug_mode = os.environ.get('FLASK_DEBUG', 'False').lower() in ('true', '1', 'yes', 'on')
    host = os.environ.get('FLASK_HOST', '127.0.0.1')
    port = int(os.environ.get('FLASK_PORT', '5000'))

    if debug_mode:
        logger.warning("DEBUG MODE ENABLED - Do not use in production!")

    logger.info(f"Starting server on {host}:{port} (debug={debug_mode})")
    app.run(debug=debug_mode, host=host, port=port, use_reloader=False)
