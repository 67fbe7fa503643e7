"""Test suite for probe-annotator.

Test organization:
- fixtures/: Mock table writers and test utilities
- unit/: Unit tests for individual modules

Run tests with:
    pytest tests/
    pytest tests/unit/
    pytest tests/ -v --tb=short
"""
