"""Integration tests for eksboot.

These tests interact with real AWS services and require valid AWS credentials.

Tests are marked with @pytest.mark.integration and can be run with:
    pytest tests/integration/ -m integration

To skip integration tests:
    pytest -m "not integration"
"""
