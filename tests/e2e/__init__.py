"""
Browser test package.

Playwright drives Chromium against the stub dashboard to check session
injection, reuse and fallback login end to end.
"""
