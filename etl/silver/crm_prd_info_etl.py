"""
Silver CRM Product Info ETL

This module transforms product master data from the bronze layer to the silver layer.
It performs the following operations:
1. Derives the category id and the short product key from the raw product key
2. Replaces missing product costs with 0
3. Normalizes product line codes into friendly values
4. Casts the start timestamp to a date
5. Derives the end date from the next version of the same product
"""

import logging

from pyspark.sql import Column, DataFrame
from pyspark.sql.functions import (
    coalesce,
    col,
    date_sub,
    lead,
    length,
    lit,
    regexp_replace,
    to_date,
    trim,
    upper,
    when,
)
from pyspark.sql.window import Window

from etl.common.etl_utils import conform_to_schema, validate_schema
from etl.common.schemas import (
    BRONZE_CRM_PRD_INFO_SCHEMA,
    SILVER_CRM_PRD_INFO_SCHEMA,
)
from config import LOG_LEVEL, LOG_FORMAT

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)

PRODUCT_LINE_MAPPING = {
    "M": "Mountain",
    "R": "Road",
    "S": "Other Sales",
    "T": "Touring",
}


def derive_category_id(prd_key: Column) -> Column:
    """First five characters of the product key, hyphens replaced by underscores."""
    return regexp_replace(prd_key.substr(1, 5), "-", "_")


def derive_product_key(prd_key: Column) -> Column:
    """Product key from the 7th character on; empty when the key is shorter than that."""
    return prd_key.substr(lit(7), length(prd_key))


def normalize_product_line(column: Column) -> Column:
    """Map product line codes to names, defaulting to n/a."""
    code = upper(trim(column))

    mapping_expr = None
    for key, value in PRODUCT_LINE_MAPPING.items():
        if mapping_expr is None:
            mapping_expr = when(code == key, lit(value))
        else:
            mapping_expr = mapping_expr.when(code == key, lit(value))

    return mapping_expr.otherwise(lit("n/a"))


def derive_end_dates(df: DataFrame) -> DataFrame:
    """
    Add prd_end_dt: the day before the next start date of the same product key.

    Versions of a product share the raw prd_key; the newest version has no
    successor and stays open-ended (null).

    Args:
        df: Product DataFrame with the raw prd_key and prd_start_dt columns

    Returns:
        DataFrame: DataFrame with prd_end_dt replaced
    """
    window_spec = Window.partitionBy("prd_key").orderBy(col("prd_start_dt").asc())

    return df.withColumn(
        "prd_end_dt",
        date_sub(to_date(lead(col("prd_start_dt")).over(window_spec)), 1),
    )


def transform_crm_prd_info(df: DataFrame) -> DataFrame:
    """
    Transform product master data for the silver layer.

    Args:
        df: Product data DataFrame from bronze layer

    Returns:
        DataFrame: Transformed product data
    """
    logger.info("Transforming CRM product info for silver layer")

    try:
        success, error_msg, validated_df = validate_schema(
            df, BRONZE_CRM_PRD_INFO_SCHEMA, strict=False
        )

        if not success:
            raise ValueError(f"Schema validation failed for input data: {error_msg}")

        # End dates are computed over the raw key, before it is shortened
        df_with_end = derive_end_dates(validated_df)

        result_df = (
            df_with_end.withColumn("cat_id", derive_category_id(col("prd_key")))
            .withColumn("prd_key", derive_product_key(col("prd_key")))
            .withColumn("prd_cost", coalesce(col("prd_cost"), lit(0)))
            .withColumn("prd_line", normalize_product_line(col("prd_line")))
            .withColumn("prd_start_dt", to_date(col("prd_start_dt")))
        )

        return conform_to_schema(result_df, SILVER_CRM_PRD_INFO_SCHEMA)
    except Exception as e:
        logger.error(f"Error transforming CRM product info: {str(e)}")
        raise
