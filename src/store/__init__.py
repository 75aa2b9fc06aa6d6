"""Document store layer.

This module wraps live and in-memory document stores behind one boundary.
It powers batched writes, purges, references and backups for the SDK.
"""
