"""
Silver ERP Location (A101) ETL

This module transforms customer location data from the bronze layer to the silver layer.
It performs the following operations:
1. Removes hyphens from customer ids so they match the CRM customer key
2. Standardizes country codes and blanks into country names
"""

import logging

from pyspark.sql import Column, DataFrame
from pyspark.sql.functions import col, regexp_replace, trim, upper, when

from etl.common.etl_utils import conform_to_schema, validate_schema
from etl.common.schemas import (
    BRONZE_ERP_LOC_A101_SCHEMA,
    SILVER_ERP_LOC_A101_SCHEMA,
)
from config import LOG_LEVEL, LOG_FORMAT

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)


def normalize_country(column: Column) -> Column:
    """
    Standardize a country value.

    DE becomes Germany, US and USA become United States, blanks and nulls
    become n/a; anything else is kept, trimmed. Codes match case-insensitively.
    """
    trimmed = trim(column)
    code = upper(trimmed)
    return (
        when(code == "DE", "Germany")
        .when(code.isin("US", "USA"), "United States")
        .when(column.isNull() | (trimmed == ""), "n/a")
        .otherwise(trimmed)
    )


def transform_erp_loc_a101(df: DataFrame) -> DataFrame:
    """
    Transform customer location data for the silver layer.

    Args:
        df: Customer location DataFrame from bronze layer

    Returns:
        DataFrame: Transformed customer locations, ordered by country
    """
    logger.info("Transforming ERP customer locations for silver layer")

    try:
        success, error_msg, validated_df = validate_schema(
            df, BRONZE_ERP_LOC_A101_SCHEMA, strict=False
        )

        if not success:
            raise ValueError(f"Schema validation failed for input data: {error_msg}")

        result_df = (
            validated_df.withColumn("cid", regexp_replace(col("cid"), "-", ""))
            .withColumn("cntry", normalize_country(col("cntry")))
            .orderBy(col("cntry").asc())
        )

        return conform_to_schema(result_df, SILVER_ERP_LOC_A101_SCHEMA)
    except Exception as e:
        logger.error(f"Error transforming ERP customer locations: {str(e)}")
        raise
