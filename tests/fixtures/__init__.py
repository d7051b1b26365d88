"""
Pytest fixtures for the HttpTransfer test suite.

- http_mocking: HTTPX MockTransport server, response builders, option spies
"""
