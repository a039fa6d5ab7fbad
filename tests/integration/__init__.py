"""Integration tests for the Automate MCP server.

These tests call a real ConnectWise Automate server and are skipped unless
real values are set, in the environment or in a .env.test file, for:

- AUTOMATE_SERVER_URL: Automate server URL
- AUTOMATE_USERNAME / AUTOMATE_PASSWORD: API user credentials
- AUTOMATE_CLIENT_ID: ConnectWise developer clientId

Tests are marked with @pytest.mark.integration and @pytest.mark.slow.
"""
