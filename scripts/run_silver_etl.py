#!/usr/bin/env python
"""
Run Silver Layer Load

This script runs the full silver load: every CRM and ERP table is truncated
and reloaded from the bronze layer. Load failures are logged, not signalled
through the exit code.

Usage:
    python scripts/run_silver_etl.py [--bucket-name BUCKET_NAME] [--region REGION]
"""

import argparse
import logging
import sys
from pathlib import Path

# Add the project root to the Python path
sys.path.append(str(Path(__file__).resolve().parents[1]))

from etl.silver.load_silver import main
from config import S3_BUCKET_NAME, AWS_REGION, LOG_LEVEL, LOG_FORMAT

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format=LOG_FORMAT
)
logger = logging.getLogger(__name__)


def parse_arguments() -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        argparse.Namespace: Parsed arguments
    """
    parser = argparse.ArgumentParser(
        description="Run Silver Layer Load"
    )
    parser.add_argument(
        "--bucket-name",
        type=str,
        default=S3_BUCKET_NAME,
        help=f"S3 bucket name (default: {S3_BUCKET_NAME})"
    )
    parser.add_argument(
        "--region",
        type=str,
        default=AWS_REGION,
        help=f"AWS region (default: {AWS_REGION})"
    )

    return parser.parse_args()


if __name__ == "__main__":
    args = parse_arguments()
    logger.info(f"Running Silver layer load for bucket: {args.bucket_name}")
    exit_code = main(args.bucket_name, args.region)
    logger.info(f"Silver layer load completed with exit code: {exit_code}")
    sys.exit(exit_code)
