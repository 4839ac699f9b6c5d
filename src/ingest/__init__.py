"""Upload ingestion pipeline.

This module decodes JSON and ZIP uploads and gates them on the contract.
It normalizes field aliases into typed sessions for the store layer.
"""
