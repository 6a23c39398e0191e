"""Conformance matrix runner for host implementations."""
