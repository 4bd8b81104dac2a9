"""
FUNDSPROOF Test Suite
=====================

Test organization:
- tests/unit/                  - Unit tests (no external services)
- tests/services/parameters/   - HTTP API tests against the ASGI app

Run tests:
    pytest                          # All tests
    pytest tests/unit               # Unit tests only
    pytest --cov=fundsproof         # With coverage
"""
