"""
Silver layer ETL processes for the sales data warehouse.

This package contains the silver load, which truncates and reloads every
CRM and ERP silver table from its bronze counterpart, the per-table cleansing
transforms, and the advisory data quality checks run over the result.
"""
