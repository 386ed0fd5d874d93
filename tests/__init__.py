"""
Test suite for the case-dashboard session utilities.

This package contains:
- unit/: isolated tests with mocked browsers and HTTP calls
- integration/: the authenticator and stub dashboard over real HTTP
- e2e/: Playwright tests of session reuse against the stub dashboard
"""
