"""Pytest configuration for integration tests.

These tests drive the MCP server in memory through a fastmcp Client, so the
full stack (normalizer, readability, renderer, templates) runs without a
network or a separately started server.
"""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
from fastmcp import Client

from mdclip.server import mcp


@pytest.fixture
async def mcp_client() -> AsyncGenerator[Client[Any]]:
    """Provide an MCP client connected to the in-memory server."""
    async with Client(mcp) as client:
        yield client
