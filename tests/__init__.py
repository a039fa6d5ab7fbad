"""Test suite for the automate-mcp MCP server.

Run tests with:
    pytest tests/
    pytest tests/ -m unit  # run only unit tests
    pytest tests/ -m integration  # run only integration tests
"""
