#!/usr/bin/env python
"""
Silver Layer Load

This script loads the silver layer from the bronze layer for every CRM and ERP table.
For each table, in a fixed order, it:
1. Truncates the silver Delta table
2. Reads the bronze Delta table
3. Applies the table's cleansing transform
4. Writes the result to the silver Delta table
5. Logs how long the step took

The whole batch runs under a single failure boundary: the first failing step
aborts the remaining ones, the error is logged and the load returns normally.
Tables replaced before the failure stay replaced.

Usage:
    python -m etl.silver.load_silver [--bucket-name BUCKET_NAME] [--region REGION]
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from pyspark.errors import PySparkException
from pyspark.sql import DataFrame, SparkSession

# Add the project root to the Python path
sys.path.append(str(Path(__file__).resolve().parents[2]))

from etl.common.spark_session import (
    create_spark_session,
    read_delta_table,
    truncate_delta_table,
    write_delta_table,
)
from etl.common.glue_catalog import register_silver_tables
from etl.common.etl_utils import elapsed_seconds
from etl.silver.crm_cust_info_etl import transform_crm_cust_info
from etl.silver.crm_prd_info_etl import transform_crm_prd_info
from etl.silver.crm_sales_details_etl import transform_crm_sales_details
from etl.silver.erp_cust_az12_etl import transform_erp_cust_az12
from etl.silver.erp_loc_a101_etl import transform_erp_loc_a101
from etl.silver.erp_px_cat_g1v2_etl import transform_erp_px_cat_g1v2
from config import (
    S3_BUCKET_NAME,
    AWS_REGION,
    LOG_LEVEL,
    LOG_FORMAT,
    REGISTER_GLUE_TABLES,
    get_prefix,
)

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)

BANNER = "=" * 73
SECTION = "-" * 73


@dataclass(frozen=True)
class SilverStep:
    """One table of the silver load: where it comes from, where it goes, how it is cleansed."""

    table_name: str
    source_system: str
    transform: Callable[[DataFrame], DataFrame]

    @property
    def bronze_path(self) -> str:
        return get_prefix("bronze", self.table_name)

    @property
    def silver_path(self) -> str:
        return get_prefix("silver", self.table_name)

    @property
    def qualified_name(self) -> str:
        return f"silver.{self.table_name}"


@dataclass
class LoadResult:
    """Outcome of a silver load. Failures are reported here, never raised."""

    success: bool = False
    step_durations: Dict[str, int] = field(default_factory=dict)
    total_seconds: Optional[int] = None
    failed_step: Optional[str] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    error_state: Optional[str] = None


# CRM tables load before ERP tables; no step reads another step's output
SILVER_STEPS: List[SilverStep] = [
    SilverStep("crm_cust_info", "crm", transform_crm_cust_info),
    SilverStep("crm_prd_info", "crm", transform_crm_prd_info),
    SilverStep("crm_sales_details", "crm", transform_crm_sales_details),
    SilverStep("erp_cust_az12", "erp", transform_erp_cust_az12),
    SilverStep("erp_loc_a101", "erp", transform_erp_loc_a101),
    SilverStep("erp_px_cat_g1v2", "erp", transform_erp_px_cat_g1v2),
]


def parse_arguments() -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        argparse.Namespace: Parsed arguments
    """
    parser = argparse.ArgumentParser(
        description="Load the silver layer from the bronze layer"
    )
    parser.add_argument(
        "--bucket-name",
        type=str,
        default=S3_BUCKET_NAME,
        help=f"S3 bucket name (default: {S3_BUCKET_NAME})",
    )
    parser.add_argument(
        "--region",
        type=str,
        default=AWS_REGION,
        help=f"AWS region (default: {AWS_REGION})",
    )

    return parser.parse_args()


def describe_error(error: Exception) -> Tuple[str, str, str]:
    """
    Extract message, code and state from a failure.

    Spark errors carry an error class and a SQLSTATE; anything else is
    reported by its exception type.

    Args:
        error: The exception raised by a step

    Returns:
        Tuple[str, str, str]: (message, code, state)
    """
    message = str(error)
    code = type(error).__name__
    state = "n/a"

    if isinstance(error, PySparkException):
        code = error.getErrorClass() or code
        state = error.getSqlState() or state

    return message, code, state


def log_load_error(message: str, code: str, state: str) -> None:
    """Log a failed load with its message, code and state."""
    logger.error(BANNER)
    logger.error("ERROR OCCURED DURING LOADING SILVER LAYER")
    logger.error(f"Error Message: {message}")
    logger.error(f"Error Code: {code}")
    logger.error(f"Error State: {state}")
    logger.error(BANNER)


def replace_table(
    spark: SparkSession, step: SilverStep, bucket_name: Optional[str] = None
) -> int:
    """
    Replace the contents of one silver table with freshly transformed bronze data.

    Args:
        spark: Spark session
        step: The table to load
        bucket_name: S3 bucket name

    Returns:
        int: Duration of the step in whole seconds
    """
    start_time = datetime.now()

    logger.info(f">> Truncating table: {step.qualified_name}")
    truncate_delta_table(spark, step.silver_path, bucket_name)

    logger.info(f">> Inserting data into: {step.qualified_name}")
    bronze_df = read_delta_table(spark, step.bronze_path, bucket_name)
    silver_df = step.transform(bronze_df)
    write_delta_table(
        df=silver_df,
        table_path=step.silver_path,
        mode="append",
        bucket_name=bucket_name,
    )

    duration = elapsed_seconds(start_time, datetime.now())
    logger.info(f">> Load Duration: {duration} seconds")

    return duration


def load_silver(spark: SparkSession, bucket_name: Optional[str] = None) -> LoadResult:
    """
    Run the full silver load.

    Every step runs in order. The first failure stops the batch; it is logged
    with its message, code and state and reported in the returned result
    instead of being raised.

    Args:
        spark: Spark session
        bucket_name: S3 bucket name

    Returns:
        LoadResult: Per-step durations on success, error details on failure
    """
    result = LoadResult()
    batch_start = datetime.now()
    current_step: Optional[SilverStep] = None

    try:
        logger.info(BANNER)
        logger.info("Loading Silver layer")
        logger.info(BANNER)

        source_system = None
        for current_step in SILVER_STEPS:
            if current_step.source_system != source_system:
                source_system = current_step.source_system
                logger.info(SECTION)
                logger.info(f"Loading {source_system.upper()} tables")
                logger.info(SECTION)

            result.step_durations[current_step.table_name] = replace_table(
                spark, current_step, bucket_name
            )

        if REGISTER_GLUE_TABLES:
            current_step = None
            if not register_silver_tables(spark, bucket_name):
                logger.warning("Some silver tables could not be registered in Glue")

        result.total_seconds = elapsed_seconds(batch_start, datetime.now())
        result.success = True

        logger.info(BANNER)
        logger.info(
            f"Successfully loaded Silver layer in {result.total_seconds} seconds"
        )
        logger.info(BANNER)
    except Exception as e:
        message, code, state = describe_error(e)
        result.failed_step = current_step.table_name if current_step else None
        result.error_message = message
        result.error_code = code
        result.error_state = state

        log_load_error(message, code, state)

    return result


def main(bucket_name: str, region: str) -> int:
    """
    Main function to run the silver load.

    Load failures, including a Spark session that cannot be created, are
    logged and do not change the exit code.

    Args:
        bucket_name: S3 bucket name
        region: AWS region

    Returns:
        int: Exit code (always 0)
    """
    logger.info(f"Starting Silver layer load into bucket: {bucket_name}")

    try:
        spark = create_spark_session(
            app_name="silver_load",
            config_props={"spark.hadoop.fs.s3a.endpoint": f"s3.{region}.amazonaws.com"},
            enable_hive_support=REGISTER_GLUE_TABLES,
        )
    except Exception as e:
        log_load_error(*describe_error(e))
        return 0

    try:
        load_silver(spark, bucket_name)
    finally:
        spark.stop()

    return 0


if __name__ == "__main__":
    args = parse_arguments()
    exit_code = main(args.bucket_name, args.region)
    sys.exit(exit_code)
