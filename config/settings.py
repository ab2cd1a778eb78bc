"""
Configuration settings for the sales data warehouse silver layer.

This module contains all configuration settings for the warehouse load,
including:
- AWS settings (region, bucket name, optional local storage root)
- Table layout for the bronze and silver layers
- Logging settings
- Glue Data Catalog and schema validation settings

All settings can be overridden by environment variables with the same name prefixed with 'DWH_'.
For example, AWS_REGION can be overridden by setting the DWH_AWS_REGION environment variable.
"""

import os
from pathlib import Path
from typing import Dict, Any, Optional

# Project root directory
PROJECT_ROOT = Path(__file__).resolve().parents[1]

# AWS Settings
AWS_REGION = os.environ.get("DWH_AWS_REGION", "eu-west-1")
S3_BUCKET_NAME = os.environ.get("DWH_S3_BUCKET_NAME", "sales-warehouse-lakehouse")

# When set, tables live under this root (local path or any Hadoop URI) instead of s3a://<bucket>/
STORAGE_ROOT: Optional[str] = os.environ.get("DWH_STORAGE_ROOT") or None

# Source systems feeding the warehouse, in load order
SOURCE_TABLES = {
    "crm": ["crm_cust_info", "crm_prd_info", "crm_sales_details"],
    "erp": ["erp_cust_az12", "erp_loc_a101", "erp_px_cat_g1v2"],
}

TABLE_NAMES = [table for tables in SOURCE_TABLES.values() for table in tables]

# Table prefix structure per layer
S3_PREFIX_STRUCTURE = {
    "bronze": {"base": "bronze/", **{t: f"bronze/{t}/" for t in TABLE_NAMES}},
    "silver": {"base": "silver/", **{t: f"silver/{t}/" for t in TABLE_NAMES}},
    "other": {
        "logs": "logs/",
        "temp": "temp/",
    },
}

# Flatten the prefix structure for easy access
S3_PREFIXES = []
for category in S3_PREFIX_STRUCTURE.values():
    S3_PREFIXES.extend(category.values())

# Logging settings
LOG_LEVEL = os.environ.get("DWH_LOG_LEVEL", "INFO")
LOG_FORMAT = os.environ.get(
    "DWH_LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# Glue Data Catalog settings
GLUE_DATABASE_PREFIX = os.environ.get("DWH_GLUE_DATABASE_PREFIX", "datawarehouse")
GLUE_DATABASES = {
    "bronze": f"{GLUE_DATABASE_PREFIX}_bronze",
    "silver": f"{GLUE_DATABASE_PREFIX}_silver",
}
REGISTER_GLUE_TABLES = (
    os.environ.get("DWH_REGISTER_GLUE_TABLES", "false").lower() == "true"
)

# Delta Lake settings
DELTA_TABLE_PROPERTIES = {
    "delta.autoOptimize.optimizeWrite": "true",
    "delta.autoOptimize.autoCompact": "true",
}

# Schema settings
SCHEMA_VALIDATION = os.environ.get("DWH_SCHEMA_VALIDATION", "true").lower() == "true"


def get_prefix(layer: str, table: str) -> str:
    """
    Get a specific table prefix from the prefix structure.

    Args:
        layer: The data layer (bronze, silver, other)
        table: The table (or category) within the layer

    Returns:
        str: The prefix

    Raises:
        KeyError: If the layer or table does not exist
    """
    return S3_PREFIX_STRUCTURE[layer][table]


def get_all_settings() -> Dict[str, Any]:
    """
    Get all settings as a dictionary.

    Returns:
        Dict[str, Any]: All settings
    """
    return {
        "AWS_REGION": AWS_REGION,
        "S3_BUCKET_NAME": S3_BUCKET_NAME,
        "STORAGE_ROOT": STORAGE_ROOT,
        "SOURCE_TABLES": SOURCE_TABLES,
        "TABLE_NAMES": TABLE_NAMES,
        "S3_PREFIX_STRUCTURE": S3_PREFIX_STRUCTURE,
        "S3_PREFIXES": S3_PREFIXES,
        "LOG_LEVEL": LOG_LEVEL,
        "LOG_FORMAT": LOG_FORMAT,
        "GLUE_DATABASE_PREFIX": GLUE_DATABASE_PREFIX,
        "GLUE_DATABASES": GLUE_DATABASES,
        "REGISTER_GLUE_TABLES": REGISTER_GLUE_TABLES,
        "DELTA_TABLE_PROPERTIES": DELTA_TABLE_PROPERTIES,
        "SCHEMA_VALIDATION": SCHEMA_VALIDATION,
    }
