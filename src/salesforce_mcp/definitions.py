"""MCP resource and tool definitions."""

from __future__ import annotations

from mcp.types import Resource, Tool

ACCOUNTS_RESOURCE_ID = "accounts/list"
RESOURCE_SCHEME = "salesforce"
# The MCP SDK validates resource URIs as absolute URLs, so the accounts
# resource is advertised as salesforce://accounts/list.
ACCOUNTS_RESOURCE_URI = f"{RESOURCE_SCHEME}://{ACCOUNTS_RESOURCE_ID}"
ACCOUNTS_MIME_TYPE = "application/json"

REFRESH_ACCOUNTS_TOOL = "refresh_accounts"


def is_accounts_resource(uri: object) -> bool:
    """True if ``uri`` names the accounts resource, bare or scheme-qualified."""
    value = str(uri)
    return value in (ACCOUNTS_RESOURCE_ID, ACCOUNTS_RESOURCE_URI)


def get_resource_definitions() -> list[Resource]:
    return [
        Resource(
            uri=ACCOUNTS_RESOURCE_URI,
            name="Salesforce Accounts",
            mimeType=ACCOUNTS_MIME_TYPE,
            description=(
                "List of Salesforce accounts (Id, Name, Type, Industry). "
                "Reading this resource queries Salesforce for a fresh snapshot."
            ),
        ),
    ]


def get_tool_definitions() -> list[Tool]:
    return [
        Tool(
            name=REFRESH_ACCOUNTS_TOOL,
            description="Refresh the list of Salesforce accounts",
            inputSchema={
                "type": "object",
                "properties": {},
            },
        ),
    ]
