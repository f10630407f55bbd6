# tests/fixtures/__init__.py
"""Shared builders for fieldplan tests."""
