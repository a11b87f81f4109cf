"""
Unit Tests for chess_devtools

This package contains unit tests for the UCI adapter, the position suites
and the reliability checker. The move service and UCI engines are mocked;
no network access or engine binary is needed.

Running Tests:
    # Run all tests
    pytest tests/

    # Run specific test file
    pytest tests/test_protocol.py

    # Run with coverage
    pytest tests/ --cov=chess_devtools --cov-report=html

Dependencies:
    - pytest: Test framework
    - pytest-cov: Coverage reporting
"""
