"""
AWS Glue Data Catalog utilities for the sales data warehouse.

This module provides functions to interact with the AWS Glue Data Catalog, including:
- Creating Glue databases
- Registering Delta tables in the Glue Data Catalog
- Registering every silver table with column descriptions
"""

import logging
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import ClientError
from pyspark.sql import SparkSession

from etl.common.spark_session import get_table_uri
from config import (
    AWS_REGION,
    GLUE_DATABASES,
    LOG_LEVEL,
    LOG_FORMAT,
    get_prefix,
)

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)

SILVER_TABLE_DESCRIPTIONS: Dict[str, Dict[str, Any]] = {
    "crm_cust_info": {
        "description": "Silver layer CRM customer master (latest record per customer)",
        "columns": {
            "cst_id": "Customer id",
            "cst_key": "Customer business key",
            "cst_firstname": "First name, trimmed",
            "cst_lastname": "Last name, trimmed",
            "cst_marital_status": "Single, Married or n/a",
            "cst_gndr": "Female, Male or n/a",
            "cst_create_date": "Date the customer record was created",
        },
    },
    "crm_prd_info": {
        "description": "Silver layer CRM product master with validity ranges",
        "columns": {
            "prd_id": "Product id",
            "cat_id": "Category id derived from the product key",
            "prd_key": "Product key without the category prefix",
            "prd_nm": "Product name",
            "prd_cost": "Product cost, 0 when unknown",
            "prd_line": "Mountain, Road, Other Sales, Touring or n/a",
            "prd_start_dt": "First day this product version is valid",
            "prd_end_dt": "Last day this product version is valid, null if current",
        },
    },
    "crm_sales_details": {
        "description": "Silver layer CRM sales line items",
        "columns": {
            "sls_ord_num": "Order number",
            "sls_prd_key": "Product key",
            "sls_cust_id": "Customer id",
            "sls_order_dt": "Order date",
            "sls_ship_dt": "Ship date",
            "sls_due_dt": "Due date",
            "sls_sales": "Sales amount (quantity * price)",
            "sls_quantity": "Quantity",
            "sls_price": "Unit price",
        },
    },
    "erp_cust_az12": {
        "description": "Silver layer ERP customer demographics",
        "columns": {
            "cid": "Customer key",
            "bdate": "Birthdate, null when in the future",
            "gen": "Female, Male or n/a",
        },
    },
    "erp_loc_a101": {
        "description": "Silver layer ERP customer locations",
        "columns": {
            "cid": "Customer key",
            "cntry": "Country name or n/a",
        },
    },
    "erp_px_cat_g1v2": {
        "description": "Silver layer ERP product category reference",
        "columns": {
            "id": "Category id",
            "cat": "Category",
            "subcat": "Subcategory",
            "maintenance": "Whether the product needs maintenance",
        },
    },
}


def create_glue_client(region_name: Optional[str] = None) -> Any:
    """
    Create and return an AWS Glue client.

    Args:
        region_name: AWS region name. If None, uses the default region from config.

    Returns:
        boto3.client: Configured Glue client
    """
    if region_name is None:
        region_name = AWS_REGION

    try:
        return boto3.client("glue", region_name=region_name)
    except Exception as e:
        logger.error(f"Failed to create Glue client: {str(e)}")
        raise


def create_database(
    database_name: str,
    description: Optional[str] = None,
    region_name: Optional[str] = None,
) -> bool:
    """
    Create a Glue Data Catalog database if it doesn't exist.

    Args:
        database_name: Name of the database to create
        description: Description of the database
        region_name: AWS region name. If None, uses the default region from config.

    Returns:
        bool: True if database was created or already exists, False otherwise
    """
    glue_client = create_glue_client(region_name)

    try:
        glue_client.get_database(Name=database_name)
        logger.info(f"Database {database_name} already exists")
        return True
    except ClientError as e:
        error_code = e.response["Error"]["Code"]
        if error_code != "EntityNotFoundException":
            logger.error(f"Error checking database {database_name}: {str(e)}")
            return False

    try:
        database_input = {"Name": database_name}
        if description:
            database_input["Description"] = description

        glue_client.create_database(DatabaseInput=database_input)
        logger.info(f"Database {database_name} created successfully")
        return True
    except ClientError as e:
        logger.error(f"Failed to create database {database_name}: {str(e)}")
        return False


def register_delta_table(
    spark: SparkSession,
    table_name: str,
    table_path: str,
    database_name: Optional[str] = None,
    description: Optional[str] = None,
    layer: str = "silver",
    bucket_name: Optional[str] = None,
    columns_description: Optional[Dict[str, str]] = None,
) -> bool:
    """
    Register a Delta table in the Glue Data Catalog.

    Args:
        spark: Spark session (with Hive support backed by Glue)
        table_name: Name of the table to register
        table_path: Table prefix (without scheme or bucket)
        database_name: Name of the database. If None, uses the default for the layer.
        description: Description of the table
        layer: Data layer (bronze, silver)
        bucket_name: S3 bucket name. If None, uses the default from config.
        columns_description: Dictionary mapping column names to descriptions

    Returns:
        bool: True if table was registered successfully, False otherwise
    """
    if database_name is None:
        database_name = GLUE_DATABASES.get(layer)
        if not database_name:
            logger.error(f"No database defined for layer: {layer}")
            return False

    full_path = get_table_uri(table_path, bucket_name)

    try:
        if not create_database(database_name, f"Sales data warehouse {layer} layer"):
            logger.error(f"Failed to create database {database_name}")
            return False

        spark.sql(
            f"""
            CREATE TABLE IF NOT EXISTS {database_name}.{table_name}
            USING DELTA
            LOCATION '{full_path}'
            """
        )

        if description:
            spark.sql(
                f"COMMENT ON TABLE {database_name}.{table_name} IS '{description}'"
            )

        if columns_description:
            for column_name, column_description in columns_description.items():
                spark.sql(
                    f"ALTER TABLE {database_name}.{table_name} "
                    f"ALTER COLUMN {column_name} COMMENT '{column_description}'"
                )

        logger.info(f"Successfully registered Delta table {database_name}.{table_name}")
        return True
    except Exception as e:
        logger.error(
            f"Failed to register Delta table {database_name}.{table_name}: {str(e)}"
        )
        return False


def register_silver_tables(
    spark: SparkSession, bucket_name: Optional[str] = None
) -> bool:
    """
    Register every silver table in the Glue Data Catalog.

    Args:
        spark: Spark session
        bucket_name: S3 bucket name. If None, uses the default from config.

    Returns:
        bool: True if all tables were registered, False otherwise
    """
    success = True

    for table_name, table_info in SILVER_TABLE_DESCRIPTIONS.items():
        registered = register_delta_table(
            spark=spark,
            table_name=table_name,
            table_path=get_prefix("silver", table_name),
            description=table_info["description"],
            layer="silver",
            bucket_name=bucket_name,
            columns_description=table_info["columns"],
        )
        if not registered:
            success = False

    return success
