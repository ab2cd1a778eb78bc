"""
ETL utilities for the sales data warehouse.

This module provides common utilities for ETL operations, including:
- Schema validation of bronze inputs
- Projection of transform results onto silver schemas
- Rule-based data quality checks
- Step timing helpers
"""

import logging
from datetime import datetime
from typing import Callable, Dict, Optional, Tuple

from pyspark.sql import DataFrame
from pyspark.sql.functions import col
from pyspark.sql.types import StructType

from config import LOG_LEVEL, LOG_FORMAT, SCHEMA_VALIDATION

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)


def validate_schema(
    df: DataFrame,
    expected_schema: StructType,
    strict: bool = False,
) -> Tuple[bool, Optional[str], DataFrame]:
    """
    Validate the schema of a DataFrame against an expected schema.

    Args:
        df: Spark DataFrame to validate
        expected_schema: Expected schema
        strict: Whether to require exact schema match (True) or allow additional
            columns and castable type differences (False)

    Returns:
        Tuple[bool, Optional[str], DataFrame]:
            - Success flag
            - Error message (if any)
            - DataFrame with the expected schema (if successful) or original DataFrame (if failed)
    """
    if not SCHEMA_VALIDATION:
        # Schema validation is disabled in config
        return True, None, df

    actual_fields = {field.name: field for field in df.schema.fields}
    expected_fields = {field.name: field for field in expected_schema.fields}

    missing_fields = [name for name in expected_fields if name not in actual_fields]

    if missing_fields:
        error_msg = f"Missing fields in schema: {', '.join(missing_fields)}"
        logger.error(error_msg)
        return False, error_msg, df

    extra_fields = [name for name in actual_fields if name not in expected_fields]

    if strict and extra_fields:
        error_msg = f"Extra fields in schema: {', '.join(extra_fields)}"
        logger.error(error_msg)
        return False, error_msg, df

    type_mismatches = [
        f"{name}: expected {expected_field.dataType}, got {actual_fields[name].dataType}"
        for name, expected_field in expected_fields.items()
        if actual_fields[name].dataType != expected_field.dataType
    ]

    if strict and type_mismatches:
        error_msg = f"Schema type mismatches: {', '.join(type_mismatches)}"
        logger.error(error_msg)
        return False, error_msg, df

    if strict:
        result_df = df.select(*[col(field.name) for field in expected_schema.fields])
    else:
        # Keep all columns but cast the expected ones to the expected type
        if type_mismatches:
            logger.warning(f"Casting columns to expected types: {', '.join(type_mismatches)}")
        result_df = df
        for name, expected_field in expected_fields.items():
            if actual_fields[name].dataType != expected_field.dataType:
                result_df = result_df.withColumn(
                    name, col(name).cast(expected_field.dataType)
                )

    return True, None, result_df


def conform_to_schema(df: DataFrame, schema: StructType) -> DataFrame:
    """
    Select the columns of a schema, in schema order, cast to the schema types.

    Args:
        df: Spark DataFrame
        schema: Target schema

    Returns:
        DataFrame: Projected DataFrame
    """
    return df.select(
        *[col(field.name).cast(field.dataType).alias(field.name) for field in schema.fields]
    )


def validate_data_quality(
    df: DataFrame,
    rules: Dict[str, Callable[[DataFrame], Tuple[bool, Optional[str]]]],
) -> Tuple[bool, Dict[str, str]]:
    """
    Validate data quality using a set of rules.

    Args:
        df: Spark DataFrame to validate
        rules: Dictionary mapping rule names to rule functions.
               Each rule function should return (success, error_message).

    Returns:
        Tuple[bool, Dict[str, str]]:
            - Overall success flag
            - Dictionary mapping rule names to error messages for failed rules
    """
    failed_rules = {}

    for rule_name, rule_func in rules.items():
        success, error_message = rule_func(df)
        if not success:
            failed_rules[rule_name] = error_message

    return len(failed_rules) == 0, failed_rules


def elapsed_seconds(start: datetime, end: datetime) -> int:
    """Number of second boundaries crossed between two timestamps, like DATEDIFF(second, ...)."""
    return int(end.timestamp()) - int(start.timestamp())
