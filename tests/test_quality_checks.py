"""
Tests for the Silver data quality checks.
"""

import sys
from datetime import date
from pathlib import Path
from unittest.mock import patch

import pytest

# Add the project root to the Python path
sys.path.append(str(Path(__file__).resolve().parents[1]))

from etl.silver.quality_checks import check_tables, expect_no_rows, is_untrimmed, main
from etl.common.schemas import (
    SILVER_CRM_CUST_INFO_SCHEMA,
    SILVER_CRM_PRD_INFO_SCHEMA,
    SILVER_CRM_SALES_DETAILS_SCHEMA,
    SILVER_ERP_CUST_AZ12_SCHEMA,
    SILVER_ERP_LOC_A101_SCHEMA,
    SILVER_ERP_PX_CAT_G1V2_SCHEMA,
)


CLEAN_ROWS = {
    "crm_cust_info": [
        (11000, "AW00011000", "Jon", "Yang", "Married", "Male", date(2025, 10, 6)),
        (11001, "AW00011001", "Eugene", "Huang", "Single", "Male", date(2025, 10, 6)),
    ],
    "crm_prd_info": [
        (210, "CO_RF", "FR-R92B-58", "HL Road Frame", 0, "Road",
         date(2011, 7, 1), date(2012, 6, 30)),
        (211, "CO_RF", "FR-R92B-58", "HL Road Frame", 12, "Road", date(2012, 7, 1), None),
    ],
    "crm_sales_details": [
        ("SO43697", "FR-R92B-58", 11000, date(2010, 12, 29), date(2011, 1, 5),
         date(2011, 1, 10), 3578, 1, 3578),
    ],
    "erp_cust_az12": [("AW00011000", date(1971, 10, 6), "Male")],
    "erp_loc_a101": [("AW00011000", "Australia"), ("AW00011001", "n/a")],
    "erp_px_cat_g1v2": [("CO_RF", "Components", "Road Frames", "Yes")],
}

SCHEMAS = {
    "crm_cust_info": SILVER_CRM_CUST_INFO_SCHEMA,
    "crm_prd_info": SILVER_CRM_PRD_INFO_SCHEMA,
    "crm_sales_details": SILVER_CRM_SALES_DETAILS_SCHEMA,
    "erp_cust_az12": SILVER_ERP_CUST_AZ12_SCHEMA,
    "erp_loc_a101": SILVER_ERP_LOC_A101_SCHEMA,
    "erp_px_cat_g1v2": SILVER_ERP_PX_CAT_G1V2_SCHEMA,
}


@pytest.fixture
def silver_tables(make_df):
    def _silver_tables(**overrides):
        rows = {**CLEAN_ROWS, **overrides}
        return {name: make_df(rows[name], SCHEMAS[name]) for name in SCHEMAS}
    return _silver_tables


def test_clean_tables_pass(silver_tables):
    assert check_tables(silver_tables()) == {}


def test_duplicate_customers_are_reported(silver_tables):
    customers = CLEAN_ROWS["crm_cust_info"] + [
        (11000, "AW00011000", " Jon", "Yang", "Married", "Male", date(2024, 1, 1)),
    ]
    failures = check_tables(silver_tables(crm_cust_info=customers))

    assert set(failures) == {"crm_cust_info"}
    assert failures["crm_cust_info"]["cst_id_unique"] == "1 rows of duplicated customer ids"
    assert "names_trimmed" in failures["crm_cust_info"]


def test_inconsistent_sales_are_reported(silver_tables):
    sales = [
        ("SO1", "FR-R92B-58", 11000, date(2011, 1, 5), date(2010, 12, 29),
         date(2011, 1, 10), 7, 2, 3),
    ]
    failures = check_tables(silver_tables(crm_sales_details=sales))

    assert set(failures["crm_sales_details"]) == {
        "order_before_ship_and_due",
        "sales_consistent",
    }


def test_orphaned_sales_are_reported(silver_tables):
    sales = [
        ("SO1", "BK-UNKNOWN", 99999, date(2010, 12, 29), date(2011, 1, 5),
         date(2011, 1, 10), 10, 1, 10),
    ]
    failures = check_tables(silver_tables(crm_sales_details=sales))

    assert set(failures["crm_sales_details"]) == {"customer_exists", "product_exists"}


def test_out_of_range_birthdates_and_raw_country_codes_are_reported(silver_tables):
    failures = check_tables(
        silver_tables(
            erp_cust_az12=[("AW00011000", date(1916, 2, 10), "Female")],
            erp_loc_a101=[("AW00011000", "DE"), ("AW00011001", None)],
        )
    )

    assert failures["erp_cust_az12"] == {
        "birthdate_in_range": "1 rows with a birthdate before 1925-01-01 or in the future"
    }
    assert failures["erp_loc_a101"]["countries_standardized"].startswith("2 rows")


def test_negative_cost_and_reversed_dates_are_reported(silver_tables):
    products = [
        (210, "CO_RF", "FR-R92B-58", "HL Road Frame", -1, "Road",
         date(2012, 7, 1), date(2012, 6, 30)),
    ]
    failures = check_tables(silver_tables(crm_prd_info=products))

    assert set(failures["crm_prd_info"]) == {"cost_non_negative", "end_not_before_start"}


def test_expect_no_rows_passes_on_empty_selection(make_df):
    df = make_df(CLEAN_ROWS["erp_loc_a101"], SILVER_ERP_LOC_A101_SCHEMA)
    rule = expect_no_rows("matching nothing", lambda d: d.filter(d.cid == "missing"))
    assert rule(df) == (True, None)


def test_is_untrimmed_flags_surrounding_whitespace(make_df):
    df = make_df(
        [("CO_RF", "Components", " Road Frames", "Yes "), ("AC_BR", "Accessories", "Bike Racks", "Yes")],
        SILVER_ERP_PX_CAT_G1V2_SCHEMA,
    )
    flagged = df.filter(is_untrimmed("subcat") | is_untrimmed("maintenance"))
    assert [r["id"] for r in flagged.collect()] == ["CO_RF"]


@patch("etl.silver.quality_checks.create_spark_session")
@patch("etl.silver.quality_checks.run_quality_checks")
def test_main_exit_codes(mock_run, mock_create_spark):
    mock_run.return_value = {}
    assert main("test-bucket", "us-east-1") == 0

    mock_run.return_value = {"erp_loc_a101": {"countries_standardized": "1 rows"}}
    assert main("test-bucket", "us-east-1") == 1

    mock_run.side_effect = RuntimeError("table not found")
    assert main("test-bucket", "us-east-1") == 1
