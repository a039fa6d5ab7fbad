"""Unit tests for the Automate MCP server.

The Automate API is mocked with respx or replaced by a mocked client, so no
environment variables or network access are needed.

Unit tests cover:
- Configuration validation and loading
- CLI argument parsing and command handling
- Server initialization and tool registration
- Token handling, request retry and pagination in the Automate client
- Fleet analytics and the MCP tool wrappers
"""
