#!/usr/bin/env python
"""
Silver Data Quality Checks

This script inspects the loaded silver tables and reports rows that break the
expectations of the silver layer: duplicate or missing keys, untrimmed text,
inconsistent sales amounts, out-of-range dates and orphaned sales lines.

The checks are advisory. They never modify data and are not part of the
silver load; run them after a load to review its output.

Usage:
    python -m etl.silver.quality_checks [--bucket-name BUCKET_NAME] [--region REGION]
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from pyspark.sql import Column, DataFrame, SparkSession
from pyspark.sql.functions import col, current_date, lit, to_date, trim

# Add the project root to the Python path
sys.path.append(str(Path(__file__).resolve().parents[2]))

from etl.common.spark_session import create_spark_session, read_delta_table
from etl.common.etl_utils import validate_data_quality
from config import (
    S3_BUCKET_NAME,
    AWS_REGION,
    LOG_LEVEL,
    LOG_FORMAT,
    TABLE_NAMES,
    get_prefix,
)

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)

Rule = Callable[[DataFrame], Tuple[bool, Optional[str]]]

EARLIEST_BIRTHDATE = "1925-01-01"


def parse_arguments() -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        argparse.Namespace: Parsed arguments
    """
    parser = argparse.ArgumentParser(description="Check silver layer data quality")
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


def expect_no_rows(description: str, select: Callable[[DataFrame], DataFrame]) -> Rule:
    """
    Build a rule that passes when select(df) returns no rows.

    Args:
        description: What the offending rows have in common
        select: Function returning the offending rows of a DataFrame

    Returns:
        Rule: Function returning (success, error_message)
    """

    def _rule(df: DataFrame) -> Tuple[bool, Optional[str]]:
        offending = select(df).count()
        if offending:
            return False, f"{offending} rows {description}"
        return True, None

    return _rule


def is_untrimmed(column_name: str) -> Column:
    """True where the column value has leading or trailing whitespace."""
    return col(column_name) != trim(col(column_name))


def build_quality_rules(tables: Dict[str, DataFrame]) -> Dict[str, Dict[str, Rule]]:
    """
    Build the data quality rules for every silver table.

    Args:
        tables: Silver DataFrames keyed by table name; referential rules on
            sales details look up the customer and product tables here

    Returns:
        Dict[str, Dict[str, Rule]]: Rules keyed by table name, then rule name
    """
    customers = tables["crm_cust_info"]
    products = tables["crm_prd_info"]

    return {
        "crm_cust_info": {
            "cst_id_not_null": expect_no_rows(
                "without a customer id", lambda df: df.filter(col("cst_id").isNull())
            ),
            "cst_id_unique": expect_no_rows(
                "of duplicated customer ids",
                lambda df: df.groupBy("cst_id").count().filter(col("count") > 1),
            ),
            "names_trimmed": expect_no_rows(
                "with untrimmed names",
                lambda df: df.filter(
                    is_untrimmed("cst_firstname") | is_untrimmed("cst_lastname")
                ),
            ),
        },
        "crm_prd_info": {
            "cost_non_negative": expect_no_rows(
                "with a missing or negative cost",
                lambda df: df.filter(col("prd_cost").isNull() | (col("prd_cost") < 0)),
            ),
            "end_not_before_start": expect_no_rows(
                "ending before they start",
                lambda df: df.filter(col("prd_end_dt") < col("prd_start_dt")),
            ),
        },
        "crm_sales_details": {
            "order_before_ship_and_due": expect_no_rows(
                "ordered after shipping or due date",
                lambda df: df.filter(
                    (col("sls_order_dt") > col("sls_ship_dt"))
                    | (col("sls_order_dt") > col("sls_due_dt"))
                ),
            ),
            "sales_consistent": expect_no_rows(
                "where sales != quantity * price or a value is missing or non-positive",
                lambda df: df.filter(
                    (col("sls_sales") != col("sls_quantity") * col("sls_price"))
                    | col("sls_sales").isNull()
                    | col("sls_quantity").isNull()
                    | col("sls_price").isNull()
                    | (col("sls_sales") <= 0)
                    | (col("sls_quantity") <= 0)
                    | (col("sls_price") <= 0)
                ),
            ),
            "order_number_trimmed": expect_no_rows(
                "with untrimmed order numbers",
                lambda df: df.filter(is_untrimmed("sls_ord_num")),
            ),
            "customer_exists": expect_no_rows(
                "referencing an unknown customer",
                lambda df: df.join(
                    customers, df["sls_cust_id"] == customers["cst_id"], "left_anti"
                ),
            ),
            "product_exists": expect_no_rows(
                "referencing an unknown product",
                lambda df: df.join(
                    products, df["sls_prd_key"] == products["prd_key"], "left_anti"
                ),
            ),
        },
        "erp_cust_az12": {
            "birthdate_in_range": expect_no_rows(
                f"with a birthdate before {EARLIEST_BIRTHDATE} or in the future",
                lambda df: df.filter(
                    (col("bdate") < to_date(lit(EARLIEST_BIRTHDATE)))
                    | (col("bdate") > current_date())
                ),
            ),
        },
        "erp_loc_a101": {
            "countries_standardized": expect_no_rows(
                "with a country code or blank instead of a country name",
                lambda df: df.filter(
                    col("cntry").isNull()
                    | trim(col("cntry")).isin("", "DE", "US", "USA")
                ),
            ),
        },
        "erp_px_cat_g1v2": {
            "values_trimmed": expect_no_rows(
                "with untrimmed category values",
                lambda df: df.filter(
                    is_untrimmed("cat")
                    | is_untrimmed("subcat")
                    | is_untrimmed("maintenance")
                ),
            ),
        },
    }


def check_tables(tables: Dict[str, DataFrame]) -> Dict[str, Dict[str, str]]:
    """
    Run the quality rules over already loaded silver DataFrames.

    Args:
        tables: Silver DataFrames keyed by table name

    Returns:
        Dict[str, Dict[str, str]]: Failed rules and messages, keyed by table name
    """
    failures = {}

    for table_name, rules in build_quality_rules(tables).items():
        passed, failed_rules = validate_data_quality(tables[table_name], rules)
        if passed:
            logger.info(f"silver.{table_name}: all {len(rules)} checks passed")
        else:
            for rule_name, message in failed_rules.items():
                logger.warning(f"silver.{table_name}: {rule_name} failed: {message}")
            failures[table_name] = failed_rules

    countries = [
        row["cntry"]
        for row in tables["erp_loc_a101"].select("cntry").distinct().orderBy("cntry").collect()
    ]
    logger.info(f"silver.erp_loc_a101 countries: {countries}")

    return failures


def run_quality_checks(
    spark: SparkSession, bucket_name: Optional[str] = None
) -> Dict[str, Dict[str, str]]:
    """
    Read every silver table and run the quality rules over it.

    Args:
        spark: Spark session
        bucket_name: S3 bucket name

    Returns:
        Dict[str, Dict[str, str]]: Failed rules and messages, keyed by table name
    """
    tables = {
        table_name: read_delta_table(
            spark, get_prefix("silver", table_name), bucket_name
        )
        for table_name in TABLE_NAMES
    }

    return check_tables(tables)


def main(bucket_name: str, region: str) -> int:
    """
    Main function to run the silver quality checks.

    Args:
        bucket_name: S3 bucket name
        region: AWS region

    Returns:
        int: Exit code (0 if every check passed, 1 otherwise)
    """
    logger.info("Starting Silver data quality checks")

    try:
        spark = create_spark_session(
            app_name="silver_quality_checks",
            config_props={"spark.hadoop.fs.s3a.endpoint": f"s3.{region}.amazonaws.com"},
        )

        failures = run_quality_checks(spark, bucket_name)

        spark.stop()
    except Exception as e:
        logger.error(f"Error in Silver data quality checks: {str(e)}")
        return 1

    if failures:
        logger.error(f"Data quality checks failed for: {', '.join(sorted(failures))}")
        return 1

    logger.info("All Silver data quality checks passed")
    return 0


if __name__ == "__main__":
    args = parse_arguments()
    exit_code = main(args.bucket_name, args.region)
    sys.exit(exit_code)
