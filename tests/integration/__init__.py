"""
Integration test package.

Tests here exercise the stub dashboard's endpoints through the Flask test
client and the authenticator against a live server over real HTTP.
"""
