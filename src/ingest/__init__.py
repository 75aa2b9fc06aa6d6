"""Export ingestion pipeline.

This module reads legacy JSON exports and applies per-record transforms.
It prepares keyed write operations for the store layer.
"""
