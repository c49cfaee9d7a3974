"""Shared test doubles for the display agent test suite."""
