"""Shared test doubles."""
