"""Tests for MCP message dispatch."""

import json

import pytest

from notes_mcp.auth import derive_partition_key
from notes_mcp.server import MCPServer
from notes_mcp.types import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    LATEST_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    CallToolResult,
    JSONRPCError,
    JSONRPCResponse,
)


def call(name, arguments=None, msg_id=1):
    params = {"name": name}
    if arguments is not None:
        params["arguments"] = arguments
    return {"jsonrpc": "2.0", "id": msg_id, "method": "tools/call", "params": params}


def result_text(response):
    assert isinstance(response, JSONRPCResponse)
    assert isinstance(response.result, CallToolResult)
    return response.result.content[0].text


class TestProtocol:
    @pytest.mark.asyncio
    async def test_initialize_echoes_supported_version(self, server):
        response = await server.handle_message(
            {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {"protocolVersion": "2025-03-26"}}
        )

        assert response.id == 1
        assert response.result.protocolVersion == "2025-03-26"
        assert response.result.serverInfo.name == "Notes API"
        assert response.result.serverInfo.version == "1.0.0"
        assert response.result.capabilities.tools == {"listChanged": False}

    @pytest.mark.asyncio
    async def test_initialize_unknown_version_gets_latest(self, server):
        response = await server.handle_message(
            {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {"protocolVersion": "1999-01-01"}}
        )

        assert response.result.protocolVersion == LATEST_PROTOCOL_VERSION

    @pytest.mark.asyncio
    async def test_ping(self, server):
        response = await server.handle_message({"jsonrpc": "2.0", "id": "p1", "method": "ping"})

        assert response.id == "p1"
        assert response.result == {}

    @pytest.mark.asyncio
    async def test_notification_has_no_reply(self, server):
        assert await server.handle_message({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None

    @pytest.mark.asyncio
    async def test_unknown_method(self, server):
        response = await server.handle_message({"jsonrpc": "2.0", "id": 3, "method": "resources/list"})

        assert isinstance(response, JSONRPCError)
        assert response.id == 3
        assert response.error["code"] == METHOD_NOT_FOUND

    @pytest.mark.asyncio
    async def test_non_object_message(self, server):
        response = await server.handle_message(["not", "a", "request"])

        assert isinstance(response, JSONRPCError)
        assert response.error["code"] == INVALID_REQUEST

    @pytest.mark.asyncio
    async def test_malformed_params(self, server):
        response = await server.handle_message({"jsonrpc": "2.0", "id": 4, "method": "tools/call"})

        assert isinstance(response, JSONRPCError)
        assert response.id == 4
        assert response.error["code"] == INVALID_PARAMS


class TestListTools:
    @pytest.mark.asyncio
    async def test_partitioned_tools(self, server):
        response = await server.handle_message({"jsonrpc": "2.0", "id": 1, "method": "tools/list"})

        tools = {t.name: t for t in response.result.tools}
        assert set(tools) == {"createNote", "readNote", "listNotes", "updateNote", "deleteNote"}

        create = tools["createNote"].inputSchema
        assert create["properties"]["title"]["type"] == "string"
        assert set(create["required"]) == {"title", "body"}

        update = tools["updateNote"].inputSchema
        assert update["properties"]["id"]["type"] == "integer"
        assert update["required"] == ["id"]

        assert tools["listNotes"].inputSchema["properties"] == {}

    @pytest.mark.asyncio
    async def test_shared_tools_take_user(self, shared_server):
        response = await shared_server.handle_message({"jsonrpc": "2.0", "id": 1, "method": "tools/list"})

        tools = {t.name: t for t in response.result.tools}
        assert set(tools["createNote"].inputSchema["required"]) == {"title", "user", "body"}
        assert tools["listNotes"].inputSchema["required"] == ["user"]
        assert "user" not in tools["readNote"].inputSchema["properties"]


class TestCallTool:
    @pytest.mark.asyncio
    async def test_create_and_read(self, server):
        created = json.loads(result_text(await server.handle_message(call("createNote", {"title": "t", "body": "b"}))))

        assert created["id"] == 1
        assert created["title"] == "t"
        assert created["created_at"] == created["updated_at"]
        assert "user" not in created

        read = json.loads(result_text(await server.handle_message(call("readNote", {"id": 1}))))
        assert read == created

    @pytest.mark.asyncio
    async def test_list_is_json_array(self, server):
        await server.handle_message(call("createNote", {"title": "a", "body": "1"}))
        await server.handle_message(call("createNote", {"title": "b", "body": "2"}))

        notes = json.loads(result_text(await server.handle_message(call("listNotes"))))

        assert [n["title"] for n in notes] == ["b", "a"]

    @pytest.mark.asyncio
    async def test_update_without_fields(self, server):
        await server.handle_message(call("createNote", {"title": "a", "body": "1"}))

        assert result_text(await server.handle_message(call("updateNote", {"id": 1}))) == "No fields to update"

    @pytest.mark.asyncio
    async def test_partial_update(self, server):
        await server.handle_message(call("createNote", {"title": "Groceries", "body": "milk, eggs"}))

        updated = json.loads(
            result_text(await server.handle_message(call("updateNote", {"id": 1, "body": "milk, eggs, bread"})))
        )

        assert updated["title"] == "Groceries"
        assert updated["body"] == "milk, eggs, bread"
        assert updated["updated_at"] > updated["created_at"]

    @pytest.mark.asyncio
    async def test_delete_reports_success(self, server):
        assert result_text(await server.handle_message(call("deleteNote", {"id": 77}))) == "Note deleted"

    @pytest.mark.asyncio
    async def test_read_missing_is_tool_error(self, server):
        response = await server.handle_message(call("readNote", {"id": 5}))

        assert response.result.isError is True
        assert result_text(response) == "Note 5 not found"

    @pytest.mark.asyncio
    async def test_unknown_tool(self, server):
        response = await server.handle_message(call("archiveNote", {"id": 1}))

        assert response.result.isError is True
        assert result_text(response) == "Unknown tool: archiveNote"

    @pytest.mark.asyncio
    async def test_wrong_type_rejected_before_storage(self, server):
        response = await server.handle_message(call("readNote", {"id": "1"}))

        assert isinstance(response, JSONRPCError)
        assert response.error["code"] == INVALID_PARAMS
        assert "readNote" in response.error["message"]
        assert len(server.partitions) == 0

    @pytest.mark.asyncio
    async def test_missing_argument_rejected(self, server):
        response = await server.handle_message(call("createNote", {"title": "only a title"}))

        assert isinstance(response, JSONRPCError)
        assert response.error["code"] == INVALID_PARAMS
        assert "body" in response.error["message"]

    @pytest.mark.asyncio
    async def test_null_update_field_rejected(self, server):
        response = await server.handle_message(call("updateNote", {"id": 1, "title": None}))

        assert isinstance(response, JSONRPCError)
        assert response.error["code"] == INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_partitions_do_not_share_notes(self, server):
        alice = derive_partition_key("alice-token")
        bob = derive_partition_key("bob-token")

        await server.handle_message(call("createNote", {"title": "mine", "body": "x"}), partition_key=alice)

        assert json.loads(result_text(await server.handle_message(call("listNotes"), partition_key=bob))) == []
        response = await server.handle_message(call("readNote", {"id": 1}), partition_key=bob)
        assert response.result.isError is True

        mine = json.loads(result_text(await server.handle_message(call("listNotes"), partition_key=alice)))
        assert [n["title"] for n in mine] == ["mine"]


class TestSharedTenancy:
    @pytest.mark.asyncio
    async def test_notes_listed_per_user(self, shared_server):
        await shared_server.handle_message(call("createNote", {"title": "a", "user": "alice", "body": "1"}))
        await shared_server.handle_message(call("createNote", {"title": "b", "user": "bob", "body": "2"}))

        notes = json.loads(result_text(await shared_server.handle_message(call("listNotes", {"user": "alice"}))))

        assert [(n["title"], n["user"]) for n in notes] == [("a", "alice")]

    @pytest.mark.asyncio
    async def test_create_requires_user(self, shared_server):
        response = await shared_server.handle_message(call("createNote", {"title": "a", "body": "1"}))

        assert isinstance(response, JSONRPCError)
        assert response.error["code"] == INVALID_PARAMS


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_stop(self, server):
        await server.start()
        assert server.is_started

        await server.handle_message(call("listNotes"))
        assert len(server.partitions) == 1

        await server.stop()
        assert not server.is_started
        assert len(server.partitions) == 0

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, server):
        await server.start()
        await server.start()

        assert server.is_started
        await server.stop()
        await server.stop()


class TestRequestIds:
    @pytest.mark.asyncio
    async def test_request_without_id_gets_no_reply(self, server):
        message = call("createNote", {"title": "a", "body": "b"})
        del message["id"]

        assert await server.handle_message(message) is None
        assert await server.handle_message({"jsonrpc": "2.0", "method": "ping"}) is None
        assert len(server.partitions) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_id", [None, True, 1.5, {"n": 1}])
    async def test_invalid_id(self, server, bad_id):
        response = await server.handle_message({"jsonrpc": "2.0", "id": bad_id, "method": "ping"})

        assert isinstance(response, JSONRPCError)
        assert response.id is None
        assert response.error["code"] == INVALID_REQUEST


class TestPartitionLimit:
    @pytest.mark.asyncio
    async def test_full_in_memory_partitions_is_tool_error(self, settings_factory):
        settings = settings_factory()
        settings.storage.max_partitions = 1
        server = MCPServer(settings=settings)
        try:
            await server.handle_message(call("listNotes"), partition_key=derive_partition_key("first"))
            response = await server.handle_message(call("listNotes"), partition_key=derive_partition_key("second"))

            assert response.result.isError is True
            assert "Partition limit of 1 reached" in result_text(response)
        finally:
            server.partitions.close()
