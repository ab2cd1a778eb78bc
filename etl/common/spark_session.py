"""
Spark session utility for the sales data warehouse.

This module provides functions to create and configure Spark sessions with Delta Lake
and the storage primitives the silver load relies on. It includes:
- Creating a Spark session with appropriate configurations
- Resolving table prefixes to storage URIs
- Reading, truncating and writing Delta tables
"""

import logging
from typing import Dict, List, Optional, Union

from delta import configure_spark_with_delta_pip
from delta.tables import DeltaTable
from pyspark.sql import DataFrame, SparkSession

from config import (
    AWS_REGION,
    S3_BUCKET_NAME,
    STORAGE_ROOT,
    DELTA_TABLE_PROPERTIES,
    LOG_LEVEL,
    LOG_FORMAT,
)

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)


def create_spark_session(
    app_name: str = "Sales Data Warehouse",
    master: str = "local[*]",
    config_props: Optional[Dict[str, str]] = None,
    enable_hive_support: bool = False,
    enable_delta: bool = True,
    log_level: str = "WARN",
) -> SparkSession:
    """
    Create and configure a Spark session with Delta Lake support.

    Args:
        app_name: Name of the Spark application
        master: Spark master URL (local[*] for local mode, yarn for YARN cluster)
        config_props: Additional configuration properties for Spark
        enable_hive_support: Whether to enable Hive support (needed for Glue catalog registration)
        enable_delta: Whether to enable Delta Lake support
        log_level: Log level for Spark (WARN, INFO, DEBUG, etc.)

    Returns:
        SparkSession: Configured Spark session
    """
    builder = SparkSession.builder.appName(app_name).master(master)

    default_configs = {
        # Invalid casts (e.g. a malformed yyyyMMdd date) yield null instead of failing the job
        "spark.sql.ansi.enabled": "false",
        "spark.sql.adaptive.enabled": "true",
        "spark.sql.adaptive.coalescePartitions.enabled": "true",
        # AWS configs
        "spark.hadoop.fs.s3a.impl": "org.apache.hadoop.fs.s3a.S3AFileSystem",
        "spark.hadoop.fs.s3a.aws.credentials.provider": "com.amazonaws.auth.DefaultAWSCredentialsProviderChain",
        "spark.hadoop.fs.s3a.endpoint": f"s3.{AWS_REGION}.amazonaws.com",
        "spark.hadoop.fs.s3a.path.style.access": "false",
        "spark.hadoop.fs.s3a.connection.ssl.enabled": "true",
    }

    if enable_delta:
        default_configs.update(
            {
                "spark.sql.extensions": "io.delta.sql.DeltaSparkSessionExtension",
                "spark.sql.catalog.spark_catalog": "org.apache.spark.sql.delta.catalog.DeltaCatalog",
            }
        )
        # Applied as defaults to every Delta table this session creates
        for key, value in DELTA_TABLE_PROPERTIES.items():
            prop = key[len("delta."):] if key.startswith("delta.") else key
            default_configs[f"spark.databricks.delta.properties.defaults.{prop}"] = value

    # User-provided configs override the defaults
    if config_props:
        default_configs.update(config_props)

    for key, value in default_configs.items():
        builder = builder.config(key, value)

    if enable_hive_support:
        builder = builder.enableHiveSupport()

    if enable_delta:
        builder = configure_spark_with_delta_pip(builder)
        logger.info("Delta Lake support enabled")

    spark = builder.getOrCreate()
    spark.sparkContext.setLogLevel(log_level)

    logger.info(f"Created Spark session with app name: {app_name}")

    return spark


def get_table_uri(table_path: str, bucket_name: Optional[str] = None) -> str:
    """
    Resolve a table prefix to the URI Spark reads and writes.

    Args:
        table_path: Table prefix (e.g. "silver/crm_cust_info/")
        bucket_name: S3 bucket name. If None, uses the default from config.

    Returns:
        str: s3a URI, or a path under STORAGE_ROOT when one is configured
    """
    # Ensure the path doesn't start with a slash
    if table_path.startswith("/"):
        table_path = table_path[1:]

    if STORAGE_ROOT:
        return f"{STORAGE_ROOT.rstrip('/')}/{table_path}"

    if bucket_name is None:
        bucket_name = S3_BUCKET_NAME

    return f"s3a://{bucket_name}/{table_path}"


def read_delta_table(
    spark: SparkSession,
    table_path: str,
    bucket_name: Optional[str] = None,
) -> DataFrame:
    """
    Read a Delta table.

    Args:
        spark: Spark session
        table_path: Table prefix (without scheme or bucket)
        bucket_name: S3 bucket name. If None, uses the default from config.

    Returns:
        DataFrame: Spark DataFrame containing the Delta table data
    """
    full_path = get_table_uri(table_path, bucket_name)

    try:
        df = spark.read.format("delta").load(full_path)
        logger.info(f"Successfully read Delta table from {full_path}")
        return df
    except Exception as e:
        logger.error(f"Failed to read Delta table from {full_path}: {str(e)}")
        raise


def truncate_delta_table(
    spark: SparkSession,
    table_path: str,
    bucket_name: Optional[str] = None,
) -> bool:
    """
    Delete every row of a Delta table, keeping its schema and history.

    Args:
        spark: Spark session
        table_path: Table prefix (without scheme or bucket)
        bucket_name: S3 bucket name. If None, uses the default from config.

    Returns:
        bool: True if rows were deleted, False if the table does not exist yet
    """
    full_path = get_table_uri(table_path, bucket_name)

    try:
        if not DeltaTable.isDeltaTable(spark, full_path):
            logger.info(f"No Delta table at {full_path}, nothing to truncate")
            return False

        DeltaTable.forPath(spark, full_path).delete()
        logger.info(f"Successfully truncated Delta table at {full_path}")
        return True
    except Exception as e:
        logger.error(f"Failed to truncate Delta table at {full_path}: {str(e)}")
        raise


def write_delta_table(
    df: DataFrame,
    table_path: str,
    mode: str = "append",
    partition_by: Optional[Union[str, List[str]]] = None,
    z_order_by: Optional[Union[str, List[str]]] = None,
    bucket_name: Optional[str] = None,
    table_properties: Optional[Dict[str, str]] = None,
) -> None:
    """
    Write a DataFrame to a Delta table.

    Args:
        df: Spark DataFrame to write
        table_path: Table prefix (without scheme or bucket)
        mode: Write mode (append, overwrite, etc.)
        partition_by: Column(s) to partition by
        z_order_by: Column(s) to Z-order by (for optimization)
        bucket_name: S3 bucket name. If None, uses the default from config.
        table_properties: Additional Delta writer options

    Returns:
        None
    """
    full_path = get_table_uri(table_path, bucket_name)

    try:
        writer = df.write.format("delta").mode(mode)

        if partition_by:
            if isinstance(partition_by, str):
                partition_by = [partition_by]
            writer = writer.partitionBy(*partition_by)

        if table_properties:
            for key, value in table_properties.items():
                writer = writer.option(key, value)

        writer.save(full_path)

        if z_order_by:
            if isinstance(z_order_by, str):
                z_order_by = [z_order_by]

            z_order_cols = ", ".join(z_order_by)
            df.sparkSession.sql(
                f"OPTIMIZE delta.`{full_path}` ZORDER BY ({z_order_cols})"
            )

        logger.info(f"Successfully wrote Delta table to {full_path}")
    except Exception as e:
        logger.error(f"Failed to write Delta table to {full_path}: {str(e)}")
        raise
