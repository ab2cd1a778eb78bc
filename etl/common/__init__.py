"""
Common utilities for ETL processes.

This package contains common utilities used across the ETL processes,
including Spark session and Delta table management, schemas, validation
helpers and Glue catalog operations.
"""
