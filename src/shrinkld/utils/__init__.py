"""Utility helpers for shrinkld."""
