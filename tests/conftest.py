# tests/conftest.py
import sys
from pathlib import Path

import pytest
from pyspark.sql import SparkSession

# Add the project root to the Python path
sys.path.append(str(Path(__file__).resolve().parents[1]))


@pytest.fixture(scope="session")
def spark_session(tmp_path_factory):
    """
    Creates a standard SparkSession configured for local testing,
    without Delta Lake specific configurations.
    """
    # Using tmp_path_factory ensures the warehouse is cleaned up after the test session
    warehouse_dir = tmp_path_factory.mktemp("spark_warehouse")

    spark = (
        SparkSession.builder
        .appName("pytest-local-spark-unit-tests")
        .master("local[1]")
        .config("spark.sql.shuffle.partitions", "2") # Keep low for local testing
        .config("spark.sql.warehouse.dir", str(warehouse_dir))
        .config("spark.sql.ansi.enabled", "false") # Same cast semantics as the job session
        .config("spark.sql.session.timeZone", "UTC")
        .config("spark.driver.memory", "1g")
        .config("spark.ui.showConsoleProgress", "false")
        .config("spark.log.level", "WARN")
        .getOrCreate()
    )

    yield spark

    spark.stop()


@pytest.fixture
def make_df(spark_session):
    """Helper fixture to build a DataFrame from tuples and a StructType."""
    def _make_df(rows, schema):
        return spark_session.createDataFrame(rows, schema=schema)
    return _make_df
