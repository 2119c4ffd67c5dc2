"""
Centralized mock objects for testing.

This package provides reusable mock factories for the WebSocket transport,
reducing code duplication across test files.
"""
