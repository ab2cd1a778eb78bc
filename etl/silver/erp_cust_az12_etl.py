"""
Silver ERP Customer (AZ12) ETL

This module transforms customer demographic data from the bronze layer to the silver layer.
It performs the following operations:
1. Strips the 'NAS' prefix from customer ids so they match the CRM customer key
2. Removes birthdates that lie in the future
3. Normalizes gender values into friendly values
"""

import logging
from datetime import date
from typing import Optional

from pyspark.sql import Column, DataFrame
from pyspark.sql.functions import col, current_date, length, lit, trim, upper, when
from pyspark.sql.types import DateType

from etl.common.etl_utils import conform_to_schema, validate_schema
from etl.common.schemas import (
    BRONZE_ERP_CUST_AZ12_SCHEMA,
    SILVER_ERP_CUST_AZ12_SCHEMA,
)
from config import LOG_LEVEL, LOG_FORMAT

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)

LEGACY_ID_PREFIX = "NAS"


def strip_id_prefix(column: Column) -> Column:
    """Remove a leading 'NAS' from the customer id; other ids are left untouched."""
    return when(
        column.startswith(LEGACY_ID_PREFIX),
        column.substr(lit(len(LEGACY_ID_PREFIX) + 1), length(column)),
    ).otherwise(column)


def normalize_gender(column: Column) -> Column:
    """Map F/FEMALE -> Female, M/MALE -> Male, anything else -> n/a."""
    value = upper(trim(column))
    return (
        when(value.isin("F", "FEMALE"), "Female")
        .when(value.isin("M", "MALE"), "Male")
        .otherwise("n/a")
    )


def transform_erp_cust_az12(
    df: DataFrame, reference_date: Optional[date] = None
) -> DataFrame:
    """
    Transform customer demographic data for the silver layer.

    Args:
        df: Customer demographics DataFrame from bronze layer
        reference_date: Birthdates after this date are discarded (default: today)

    Returns:
        DataFrame: Transformed customer demographics
    """
    logger.info("Transforming ERP customer demographics for silver layer")

    try:
        success, error_msg, validated_df = validate_schema(
            df, BRONZE_ERP_CUST_AZ12_SCHEMA, strict=False
        )

        if not success:
            raise ValueError(f"Schema validation failed for input data: {error_msg}")

        today = lit(reference_date).cast(DateType()) if reference_date else current_date()

        result_df = (
            validated_df.withColumn("cid", strip_id_prefix(col("cid")))
            .withColumn(
                "bdate",
                when(col("bdate") > today, lit(None).cast(DateType())).otherwise(
                    col("bdate")
                ),
            )
            .withColumn("gen", normalize_gender(col("gen")))
        )

        return conform_to_schema(result_df, SILVER_ERP_CUST_AZ12_SCHEMA)
    except Exception as e:
        logger.error(f"Error transforming ERP customer demographics: {str(e)}")
        raise
