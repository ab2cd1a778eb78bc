"""
Silver ERP Product Category (G1V2) ETL

The category reference data arrives clean from the source system; this module
copies it to the silver layer unchanged.
"""

import logging

from pyspark.sql import DataFrame

from etl.common.etl_utils import conform_to_schema, validate_schema
from etl.common.schemas import (
    BRONZE_ERP_PX_CAT_G1V2_SCHEMA,
    SILVER_ERP_PX_CAT_G1V2_SCHEMA,
)
from config import LOG_LEVEL, LOG_FORMAT

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)


def transform_erp_px_cat_g1v2(df: DataFrame) -> DataFrame:
    """
    Project the category reference columns for the silver layer.

    Args:
        df: Product category DataFrame from bronze layer

    Returns:
        DataFrame: id, cat, subcat and maintenance, as delivered
    """
    logger.info("Copying ERP product categories to silver layer")

    try:
        success, error_msg, validated_df = validate_schema(
            df, BRONZE_ERP_PX_CAT_G1V2_SCHEMA, strict=False
        )

        if not success:
            raise ValueError(f"Schema validation failed for input data: {error_msg}")

        return conform_to_schema(validated_df, SILVER_ERP_PX_CAT_G1V2_SCHEMA)
    except Exception as e:
        logger.error(f"Error copying ERP product categories: {str(e)}")
        raise
