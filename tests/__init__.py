"""
jyugemu test suite.

Tests are organized by layer:
    tests/unit/         Unit tests (filesystem under tmp_path only)
    tests/integration/  CLI and multi-process tests

Run all tests:
    pytest

Run with coverage:
    pytest --cov=jyugemu
"""
