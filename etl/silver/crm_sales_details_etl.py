"""
Silver CRM Sales Details ETL

This module transforms sales line items from the bronze layer to the silver layer.
It performs the following operations:
1. Converts yyyyMMdd integer dates (order, ship, due) to dates, discarding invalid values
2. Recomputes sales amounts that are missing, non-positive or inconsistent
3. Derives missing or non-positive prices from the sales amount and quantity

Sales and price corrections are both evaluated against the bronze values of
the row, so a recomputed sales amount never feeds the price fallback.
"""

import logging

from pyspark.sql import Column, DataFrame
from pyspark.sql.functions import abs as abs_, col, length, lit, make_date, when
from pyspark.sql.types import DateType, IntegerType

from etl.common.etl_utils import conform_to_schema, validate_schema
from etl.common.schemas import (
    BRONZE_CRM_SALES_DETAILS_SCHEMA,
    SILVER_CRM_SALES_DETAILS_SCHEMA,
)
from config import LOG_LEVEL, LOG_FORMAT

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)

DATE_COLUMNS = ["sls_order_dt", "sls_ship_dt", "sls_due_dt"]


def int_to_date(column: Column) -> Column:
    """
    Convert a yyyyMMdd integer to a date.

    Values that are not strictly positive or do not have exactly eight digits
    become null, as do eight-digit values that are not a calendar date.
    """
    year = (column / 10000).cast(IntegerType())
    month = (column / 100).cast(IntegerType()) % 100
    day = (column % 100).cast(IntegerType())

    return when(
        (column <= 0) | (length(column.cast("string")) != 8),
        lit(None).cast(DateType()),
    ).otherwise(make_date(year, month, day))


def corrected_sales() -> Column:
    """sls_sales, replaced by quantity * |price| when null, <= 0 or inconsistent."""
    expected_sales = col("sls_quantity") * abs_(col("sls_price"))

    return when(
        col("sls_sales").isNull()
        | (col("sls_sales") <= 0)
        | (col("sls_sales") != expected_sales),
        expected_sales,
    ).otherwise(col("sls_sales"))


def corrected_price() -> Column:
    """
    sls_price, replaced by sales / quantity when null or <= 0.

    A zero quantity yields a null price; the division truncates toward zero
    like integer division.
    """
    quantity = when(col("sls_quantity") != 0, col("sls_quantity"))

    return when(
        col("sls_price").isNull() | (col("sls_price") <= 0),
        (col("sls_sales") / quantity).cast(IntegerType()),
    ).otherwise(col("sls_price"))


def correct_amounts(df: DataFrame) -> DataFrame:
    """
    Correct sls_sales and sls_price of every row.

    Both expressions read the incoming columns; quantity is passed through
    unchanged.

    Args:
        df: Sales DataFrame

    Returns:
        DataFrame: DataFrame with corrected sls_sales and sls_price
    """
    return df.withColumns(
        {"sls_sales": corrected_sales(), "sls_price": corrected_price()}
    )


def transform_crm_sales_details(df: DataFrame) -> DataFrame:
    """
    Transform sales details for the silver layer.

    Args:
        df: Sales details DataFrame from bronze layer

    Returns:
        DataFrame: Transformed sales details
    """
    logger.info("Transforming CRM sales details for silver layer")

    try:
        success, error_msg, validated_df = validate_schema(
            df, BRONZE_CRM_SALES_DETAILS_SCHEMA, strict=False
        )

        if not success:
            raise ValueError(f"Schema validation failed for input data: {error_msg}")

        result_df = validated_df
        for date_column in DATE_COLUMNS:
            result_df = result_df.withColumn(date_column, int_to_date(col(date_column)))

        result_df = correct_amounts(result_df)

        return conform_to_schema(result_df, SILVER_CRM_SALES_DETAILS_SCHEMA)
    except Exception as e:
        logger.error(f"Error transforming CRM sales details: {str(e)}")
        raise
