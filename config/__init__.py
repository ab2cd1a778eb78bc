"""
Configuration package for the sales data warehouse.

This package contains configuration settings for the bronze to silver load.
"""

from config.settings import (
    AWS_REGION,
    S3_BUCKET_NAME,
    STORAGE_ROOT,
    SOURCE_TABLES,
    TABLE_NAMES,
    S3_PREFIX_STRUCTURE,
    S3_PREFIXES,
    LOG_LEVEL,
    LOG_FORMAT,
    GLUE_DATABASE_PREFIX,
    GLUE_DATABASES,
    REGISTER_GLUE_TABLES,
    DELTA_TABLE_PROPERTIES,
    SCHEMA_VALIDATION,
    get_prefix,
    get_all_settings,
)

__all__ = [
    "AWS_REGION",
    "S3_BUCKET_NAME",
    "STORAGE_ROOT",
    "SOURCE_TABLES",
    "TABLE_NAMES",
    "S3_PREFIX_STRUCTURE",
    "S3_PREFIXES",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "GLUE_DATABASE_PREFIX",
    "GLUE_DATABASES",
    "REGISTER_GLUE_TABLES",
    "DELTA_TABLE_PROPERTIES",
    "SCHEMA_VALIDATION",
    "get_prefix",
    "get_all_settings",
]
