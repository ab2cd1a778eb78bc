"""
Silver CRM Customer Info ETL

This module transforms customer master data from the bronze layer to the silver layer.
It performs the following operations:
1. Drops rows without a customer id
2. Keeps only the newest record per customer (by create date)
3. Trims whitespace from first and last names
4. Normalizes marital status and gender codes into friendly values
"""

import logging

from pyspark.sql import Column, DataFrame
from pyspark.sql.functions import col, row_number, trim, upper, when
from pyspark.sql.window import Window

from etl.common.etl_utils import conform_to_schema, validate_schema
from etl.common.schemas import (
    BRONZE_CRM_CUST_INFO_SCHEMA,
    SILVER_CRM_CUST_INFO_SCHEMA,
)
from config import LOG_LEVEL, LOG_FORMAT

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)


def normalize_marital_status(column: Column) -> Column:
    """Map marital status codes: S -> Single, M -> Married, anything else -> n/a."""
    code = upper(trim(column))
    return (
        when(code == "S", "Single")
        .when(code == "M", "Married")
        .otherwise("n/a")
    )


def normalize_gender(column: Column) -> Column:
    """Map gender codes: F -> Female, M -> Male, anything else -> n/a."""
    code = upper(trim(column))
    return when(code == "F", "Female").when(code == "M", "Male").otherwise("n/a")


def deduplicate_customers(df: DataFrame) -> DataFrame:
    """
    Keep the most recently created record for every customer id.

    Rows with a null customer id are discarded. Records without a create date
    sort after dated ones; ties on the create date are resolved arbitrarily.

    Args:
        df: Customer DataFrame

    Returns:
        DataFrame: One row per cst_id
    """
    window_spec = Window.partitionBy("cst_id").orderBy(
        col("cst_create_date").desc_nulls_last()
    )

    return (
        df.filter(col("cst_id").isNotNull())
        .withColumn("flag_last", row_number().over(window_spec))
        .filter(col("flag_last") == 1)
        .drop("flag_last")
    )


def transform_crm_cust_info(df: DataFrame) -> DataFrame:
    """
    Transform customer master data for the silver layer.

    Args:
        df: Customer data DataFrame from bronze layer

    Returns:
        DataFrame: Transformed customer data
    """
    logger.info("Transforming CRM customer info for silver layer")

    try:
        success, error_msg, validated_df = validate_schema(
            df, BRONZE_CRM_CUST_INFO_SCHEMA, strict=False
        )

        if not success:
            raise ValueError(f"Schema validation failed for input data: {error_msg}")

        latest_df = deduplicate_customers(validated_df)

        result_df = (
            latest_df.withColumn("cst_firstname", trim(col("cst_firstname")))
            .withColumn("cst_lastname", trim(col("cst_lastname")))
            .withColumn(
                "cst_marital_status", normalize_marital_status(col("cst_marital_status"))
            )
            .withColumn("cst_gndr", normalize_gender(col("cst_gndr")))
        )

        return conform_to_schema(result_df, SILVER_CRM_CUST_INFO_SCHEMA)
    except Exception as e:
        logger.error(f"Error transforming CRM customer info: {str(e)}")
        raise
