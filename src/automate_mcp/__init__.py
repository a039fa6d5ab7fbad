"""Automate MCP: Model Context Protocol server for ConnectWise Automate.

This package provides an MCP server and an asynchronous API client for
querying managed computers, clients, locations and groups in ConnectWise
Automate, together with fleet analytics such as aggregate summaries,
offline and stale agent detection, and bulk existence checks.
"""

__version__ = "0.3.0"
