"""Unit tests for RequestRouter operations and lifecycle state."""

from __future__ import annotations

import json

import pytest

from salesforce_mcp.cache import AccountCache
from salesforce_mcp.errors import (
    InternalError,
    MissingOrgAlias,
    NonZeroExit,
    RouterClosed,
    RouterNotReady,
    UnknownResource,
    UnknownTool,
)
from salesforce_mcp.fetcher import AccountFetcher
from salesforce_mcp.router import RequestRouter
from salesforce_mcp.types import AccountRecord, RouterState
from tests.fakes import ACME_OUTPUT, FakeRunner, account, make_settings, query_output


def _router(runner: FakeRunner, *, open_: bool = True, **settings) -> RequestRouter:
    fetcher = AccountFetcher(AccountCache(), make_settings(**settings), runner=runner)
    router = RequestRouter(fetcher)
    if open_:
        router.open()
    return router


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_requests_before_open_are_rejected(self):
        router = _router(FakeRunner(), open_=False)

        assert router.state is RouterState.UNINITIALIZED
        with pytest.raises(RouterNotReady):
            await router.list_tools()

    @pytest.mark.asyncio
    async def test_state_transitions(self):
        router = _router(FakeRunner(), open_=False)

        router.open()
        assert router.state is RouterState.READY

        await router.list_resources()
        assert router.state is RouterState.SERVING

        router.close()
        assert router.state is RouterState.CLOSED

    @pytest.mark.asyncio
    async def test_closed_router_rejects_requests_and_reopen(self):
        runner = FakeRunner()
        router = _router(runner)
        router.close()

        with pytest.raises(RouterClosed):
            await router.call_tool("refresh_accounts", {})
        with pytest.raises(RouterClosed):
            router.open()
        assert runner.calls == []


class TestResources:
    @pytest.mark.asyncio
    async def test_list_resources_returns_accounts_descriptor(self):
        runner = FakeRunner()
        router = _router(runner)

        resources = await router.list_resources()

        assert len(resources) == 1
        resource = resources[0]
        assert str(resource.uri) == "salesforce://accounts/list"
        assert resource.name == "Salesforce Accounts"
        assert resource.mimeType == "application/json"
        assert resource.description
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_read_resource_end_to_end(self):
        runner = FakeRunner(stdout=ACME_OUTPUT)
        router = _router(runner, org_alias="acme")

        await router.list_resources()
        contents = await router.read_resource("salesforce://accounts/list")

        assert len(contents) == 1
        assert contents[0].mime_type == "application/json"
        assert json.loads(contents[0].content) == [
            {"id": "001", "name": "Acme Co", "type": "Customer", "industry": "Tech"}
        ]
        assert len(runner.calls) == 1
        assert runner.calls[0]["argv"][4] == "acme"

    @pytest.mark.asyncio
    async def test_read_resource_accepts_bare_identifier(self):
        runner = FakeRunner()
        router = _router(runner)

        contents = await router.read_resource("accounts/list")

        assert json.loads(contents[0].content)[0]["id"] == "001"

    @pytest.mark.asyncio
    async def test_read_resource_returns_post_fetch_snapshot(self):
        runner = FakeRunner()
        router = _router(runner)
        router.fetcher.cache.replace([AccountRecord(id="stale", name="Stale")])
        runner.stdout = query_output([account("101", "Fresh"), account("102", "Fresher")])

        contents = await router.read_resource("accounts/list")

        assert [r["id"] for r in json.loads(contents[0].content)] == ["101", "102"]
        assert len(runner.calls) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "uri", ["accounts/detail", "salesforce://contacts/list", "file:///etc/passwd", ""]
    )
    async def test_unknown_resource_does_not_fetch(self, uri):
        runner = FakeRunner()
        router = _router(runner)
        previous = router.fetcher.cache.replace([AccountRecord(id="000", name="Existing")])

        with pytest.raises(UnknownResource) as exc_info:
            await router.read_resource(uri)

        assert exc_info.value.code == "unknown_resource"
        assert runner.calls == []
        assert router.fetcher.cache.get() is previous


class TestTools:
    @pytest.mark.asyncio
    async def test_list_tools_returns_refresh_accounts(self):
        tools = await _router(FakeRunner()).list_tools()

        assert [tool.name for tool in tools] == ["refresh_accounts"]
        assert tools[0].inputSchema == {"type": "object", "properties": {}}
        assert tools[0].description

    @pytest.mark.asyncio
    async def test_call_tool_reports_exact_count(self):
        stdout = query_output(
            [account("001"), account("002"), account(None), account("003")]
        )
        runner = FakeRunner(stdout=stdout)
        router = _router(runner)

        response = await router.call_tool("refresh_accounts", {})

        assert len(response) == 1
        assert response[0].type == "text"
        assert response[0].text == "Successfully refreshed 3 accounts"
        assert len(router.fetcher.cache.get()) == 3

    @pytest.mark.asyncio
    async def test_call_tool_counts_distinct_ids(self):
        stdout = query_output([account("001"), account("001"), account("002")])
        router = _router(FakeRunner(stdout=stdout))

        response = await router.call_tool("refresh_accounts", {})

        assert response[0].text == "Successfully refreshed 2 accounts"
        assert [r.id for r in router.fetcher.cache.get()] == ["001", "002"]

    @pytest.mark.asyncio
    async def test_call_tool_unknown_name_does_not_fetch(self):
        runner = FakeRunner()
        router = _router(runner)

        with pytest.raises(UnknownTool) as exc_info:
            await router.call_tool("delete_accounts", {})

        assert "delete_accounts" in exc_info.value.message
        assert runner.calls == []


class TestErrorWrapping:
    @pytest.mark.asyncio
    async def test_fetch_failure_becomes_internal_error_without_raw_output(self):
        secret = "ERROR: access token 00Dxx0000001gPL!AQ4AQ expired"
        runner = FakeRunner(error=NonZeroExit(1, stderr=secret, stdout=secret))
        router = _router(runner)

        with pytest.raises(InternalError) as exc_info:
            await router.call_tool("refresh_accounts", {})

        assert exc_info.value.code == "internal_error"
        assert exc_info.value.details == {"cause": "invocation_failed"}
        assert "AQ4AQ" not in exc_info.value.message
        assert "AQ4AQ" not in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_malformed_output_becomes_internal_error(self):
        runner = FakeRunner(stdout="<<garbage with CustomerSecret>>")
        router = _router(runner)

        with pytest.raises(InternalError) as exc_info:
            await router.read_resource("accounts/list")

        assert "CustomerSecret" not in exc_info.value.message
        assert router.fetcher.cache.get() == ()

    @pytest.mark.asyncio
    async def test_missing_org_alias_is_reported_per_operation(self):
        runner = FakeRunner()
        router = _router(runner, org_alias=None)

        with pytest.raises(InternalError) as exc_info:
            await router.call_tool("refresh_accounts", {})

        assert isinstance(exc_info.value.__cause__, MissingOrgAlias)
        assert runner.calls == []
        # The router keeps serving
        assert router.state is RouterState.SERVING
        assert len(await router.list_tools()) == 1
