"""Test support: factories and API payload helpers."""
