"""Utility helpers for common_storage."""
