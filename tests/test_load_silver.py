"""
Tests for the Silver layer load.

This module contains tests for the step sequencing, logging and failure
boundary of the silver load. Delta I/O is mocked out.
"""

import sys
import unittest
from pathlib import Path
from unittest.mock import MagicMock, call, patch

from pyspark.errors import PySparkException

# Add the project root to the Python path
sys.path.append(str(Path(__file__).resolve().parents[1]))

from etl.silver.load_silver import (
    SILVER_STEPS,
    LoadResult,
    SilverStep,
    describe_error,
    load_silver,
    main,
    replace_table,
)


def _mock_steps():
    return [
        SilverStep(step.table_name, step.source_system, MagicMock(name=step.table_name))
        for step in SILVER_STEPS
    ]


class TestSilverSteps(unittest.TestCase):
    """Test cases for the step definitions."""

    def test_steps_run_crm_before_erp(self):
        self.assertEqual(
            [step.table_name for step in SILVER_STEPS],
            [
                "crm_cust_info",
                "crm_prd_info",
                "crm_sales_details",
                "erp_cust_az12",
                "erp_loc_a101",
                "erp_px_cat_g1v2",
            ],
        )

    def test_step_paths(self):
        step = SILVER_STEPS[0]
        self.assertEqual(step.bronze_path, "bronze/crm_cust_info/")
        self.assertEqual(step.silver_path, "silver/crm_cust_info/")
        self.assertEqual(step.qualified_name, "silver.crm_cust_info")


class TestReplaceTable(unittest.TestCase):
    """Test cases for a single truncate-and-load step."""

    @patch("etl.silver.load_silver.write_delta_table")
    @patch("etl.silver.load_silver.read_delta_table")
    @patch("etl.silver.load_silver.truncate_delta_table")
    def test_truncates_then_reads_transforms_and_appends(
        self, mock_truncate, mock_read, mock_write
    ):
        spark = MagicMock()
        transform = MagicMock()
        step = SilverStep("erp_loc_a101", "erp", transform)

        manager = MagicMock()
        manager.attach_mock(mock_truncate, "truncate")
        manager.attach_mock(mock_read, "read")
        manager.attach_mock(transform, "transform")
        manager.attach_mock(mock_write, "write")

        duration = replace_table(spark, step, "test-bucket")

        self.assertIsInstance(duration, int)
        self.assertEqual(
            [c[0] for c in manager.mock_calls],
            ["truncate", "read", "transform", "write"],
        )
        mock_truncate.assert_called_once_with(spark, "silver/erp_loc_a101/", "test-bucket")
        mock_read.assert_called_once_with(spark, "bronze/erp_loc_a101/", "test-bucket")
        transform.assert_called_once_with(mock_read.return_value)

        _, kwargs = mock_write.call_args
        self.assertEqual(kwargs["df"], transform.return_value)
        self.assertEqual(kwargs["table_path"], "silver/erp_loc_a101/")
        self.assertEqual(kwargs["mode"], "append")
        self.assertEqual(kwargs["bucket_name"], "test-bucket")


@patch("etl.silver.load_silver.write_delta_table")
@patch("etl.silver.load_silver.read_delta_table")
@patch("etl.silver.load_silver.truncate_delta_table")
class TestLoadSilver(unittest.TestCase):
    """Test cases for the full batch."""

    def setUp(self):
        self.spark = MagicMock()
        self.steps = _mock_steps()
        patcher = patch("etl.silver.load_silver.SILVER_STEPS", self.steps)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_success_runs_every_step(self, mock_truncate, mock_read, mock_write):
        result = load_silver(self.spark, "test-bucket")

        self.assertTrue(result.success)
        self.assertEqual(
            list(result.step_durations), [step.table_name for step in self.steps]
        )
        self.assertIsNotNone(result.total_seconds)
        self.assertIsNone(result.error_message)
        self.assertEqual(
            mock_truncate.call_args_list,
            [call(self.spark, step.silver_path, "test-bucket") for step in self.steps],
        )
        self.assertEqual(mock_write.call_count, 6)

    def test_success_logs_progress(self, mock_truncate, mock_read, mock_write):
        with self.assertLogs("etl.silver.load_silver", level="INFO") as logs:
            load_silver(self.spark, "test-bucket")

        output = "\n".join(logs.output)
        self.assertIn("Loading Silver layer", output)
        self.assertIn("Loading CRM tables", output)
        self.assertIn("Loading ERP tables", output)
        self.assertIn(">> Truncating table: silver.crm_cust_info", output)
        self.assertIn(">> Inserting data into: silver.erp_px_cat_g1v2", output)
        self.assertIn(">> Load Duration:", output)
        self.assertIn("Successfully loaded Silver layer in", output)
        self.assertLess(output.index("Loading CRM tables"), output.index("Loading ERP tables"))

    def test_failure_stops_batch_without_raising(self, mock_truncate, mock_read, mock_write):
        mock_read.side_effect = [MagicMock(), MagicMock(), RuntimeError("bronze table missing")]

        result = load_silver(self.spark, "test-bucket")

        self.assertIsInstance(result, LoadResult)
        self.assertFalse(result.success)
        self.assertEqual(result.failed_step, "crm_sales_details")
        self.assertEqual(result.error_message, "bronze table missing")
        self.assertEqual(result.error_code, "RuntimeError")
        self.assertEqual(result.error_state, "n/a")
        self.assertEqual(list(result.step_durations), ["crm_cust_info", "crm_prd_info"])

        # Earlier steps stay replaced, later steps are never started
        self.assertEqual(mock_truncate.call_count, 3)
        self.assertEqual(mock_write.call_count, 2)
        for step in self.steps[3:]:
            step.transform.assert_not_called()

    def test_failure_logs_error_details(self, mock_truncate, mock_read, mock_write):
        self.steps[4].transform.side_effect = ValueError("Schema validation failed")

        with self.assertLogs("etl.silver.load_silver", level="INFO") as logs:
            result = load_silver(self.spark, "test-bucket")

        output = "\n".join(logs.output)
        self.assertEqual(result.failed_step, "erp_loc_a101")
        self.assertIn("ERROR OCCURED DURING LOADING SILVER LAYER", output)
        self.assertIn("Error Message: Schema validation failed", output)
        self.assertIn("Error Code: ValueError", output)
        self.assertIn("Error State: n/a", output)
        self.assertNotIn("Successfully loaded Silver layer", output)

    def test_rerun_replaces_tables_again(self, mock_truncate, mock_read, mock_write):
        first = load_silver(self.spark, "test-bucket")
        second = load_silver(self.spark, "test-bucket")

        self.assertTrue(first.success and second.success)
        self.assertEqual(mock_truncate.call_args_list[:6], mock_truncate.call_args_list[6:])
        self.assertEqual(mock_write.call_count, 12)

    @patch("etl.silver.load_silver.register_silver_tables")
    def test_glue_registration_is_off_by_default(
        self, mock_register, mock_truncate, mock_read, mock_write
    ):
        load_silver(self.spark, "test-bucket")
        mock_register.assert_not_called()

    @patch("etl.silver.load_silver.REGISTER_GLUE_TABLES", True)
    @patch("etl.silver.load_silver.register_silver_tables")
    def test_glue_registration_when_enabled(
        self, mock_register, mock_truncate, mock_read, mock_write
    ):
        mock_register.return_value = False

        result = load_silver(self.spark, "test-bucket")

        mock_register.assert_called_once_with(self.spark, "test-bucket")
        self.assertTrue(result.success)


class TestDescribeError(unittest.TestCase):
    """Test cases for error detail extraction."""

    def test_plain_exception(self):
        self.assertEqual(
            describe_error(KeyError("crm_cust_info")),
            ("'crm_cust_info'", "KeyError", "n/a"),
        )

    def test_spark_exception_uses_error_class_and_sqlstate(self):
        error = MagicMock(spec=PySparkException)
        error.getErrorClass.return_value = "PATH_NOT_FOUND"
        error.getSqlState.return_value = "42K03"

        _, code, state = describe_error(error)

        self.assertEqual(code, "PATH_NOT_FOUND")
        self.assertEqual(state, "42K03")


class TestMain(unittest.TestCase):
    """Test cases for the entry point."""

    @patch("etl.silver.load_silver.create_spark_session")
    @patch("etl.silver.load_silver.load_silver")
    def test_main_success(self, mock_load, mock_create_spark):
        mock_load.return_value = LoadResult(success=True)

        result = main("test-bucket", "us-east-1")

        self.assertEqual(result, 0)
        mock_load.assert_called_once_with(mock_create_spark.return_value, "test-bucket")
        mock_create_spark.return_value.stop.assert_called_once()

    @patch("etl.silver.load_silver.create_spark_session")
    @patch("etl.silver.load_silver.load_silver")
    def test_main_failed_load_still_exits_zero(self, mock_load, mock_create_spark):
        mock_load.return_value = LoadResult(success=False, error_message="Test error")

        result = main("test-bucket", "us-east-1")

        self.assertEqual(result, 0)
        mock_create_spark.return_value.stop.assert_called_once()

    @patch("etl.silver.load_silver.create_spark_session")
    @patch("etl.silver.load_silver.load_silver")
    def test_main_session_failure_still_exits_zero(self, mock_load, mock_create_spark):
        mock_create_spark.side_effect = RuntimeError("Java gateway process exited")

        with self.assertLogs("etl.silver.load_silver", level="ERROR") as logs:
            result = main("test-bucket", "us-east-1")

        self.assertEqual(result, 0)
        mock_load.assert_not_called()
        output = "\n".join(logs.output)
        self.assertIn("ERROR OCCURED DURING LOADING SILVER LAYER", output)
        self.assertIn("Error Message: Java gateway process exited", output)
        self.assertIn("Error Code: RuntimeError", output)


if __name__ == "__main__":
    unittest.main()
