"""Derived-field reconciliation.

This package recomputes denormalized fields from authoritative source
collections and writes back only the records that drifted.
"""
