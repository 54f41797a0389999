"""Tests for the MCP tool functions and server registration.

Tool functions are called directly with a GraphStore; registration tests
inspect the FastMCP tool manager. All tests skip without the mcp extra.
"""

import json

import pytest

pytest.importorskip("mcp")

from layergraph.config import DEFAULT_CONFIG, ConfigLoader  # noqa: E402
from layergraph.mcp.server import (  # noqa: E402
    _add_edge,
    _add_node,
    _add_to_layer,
    _discard_changes,
    _find_path,
    _get_mutation_log,
    _get_neighbors,
    _get_node,
    _get_node_types,
    _list_layer,
    _remove_edge,
    _remove_node,
    _save_graph,
    _search_graph,
    _undo_last_mutation,
    _verify_graph,
    create_server,
)

TOOL_NAMES = {
    "search_graph",
    "get_node",
    "get_neighbors",
    "find_path",
    "get_node_types",
    "list_layer",
    "add_node",
    "add_edge",
    "add_to_layer",
    "remove_node",
    "remove_edge",
    "verify_graph",
    "save_graph",
    "discard_changes",
    "undo_last_mutation",
    "get_mutation_log",
}


@pytest.fixture
def gpath(graph_file):
    return str(graph_file)


# ─────────────────────────────────────────────────────────────────────────────
# Read tools
# ─────────────────────────────────────────────────────────────────────────────


class TestReadTools:
    """Tests for the read-only tool functions."""

    def test_search_graph(self, store, gpath):
        result = _search_graph(store, gpath, "cart")

        assert result["count"] == 1
        assert result["results"][0]["id"] == "B"

    def test_search_graph_missing_file(self, store, tmp_path):
        result = _search_graph(store, str(tmp_path / "none.json"), "x")

        assert result["success"] is False
        assert result["kind"] == "NotFound"
        assert "Graph file not found" in result["error"]

    def test_search_graph_malformed_file(self, store, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("[1, 2", encoding="utf-8")

        result = _search_graph(store, str(bad), "x")

        assert result["kind"] == "ParseError"

    def test_get_node(self, store, gpath):
        result = _get_node(store, gpath, "A")

        assert result["node"]["id"] == "A"
        assert result["outgoing"][0]["edgeType"] == "includes"
        assert result["layer"] == "workflow"
        assert result["layers"] == ["workflow"]

    def test_get_node_not_found(self, store, gpath):
        result = _get_node(store, gpath, "Z")

        assert result == {"success": False, "error": "Node not found: Z", "kind": "NodeNotFound"}

    def test_get_neighbors(self, store, gpath):
        result = _get_neighbors(store, gpath, "B", direction="incoming")

        assert result["neighbors"] == [
            {
                "node": {"id": "A", "type": "Workflow", "label": "Checkout flow"},
                "edgeType": "includes",
                "direction": "incoming",
            }
        ]

    def test_get_neighbors_bad_direction(self, store, gpath):
        result = _get_neighbors(store, gpath, "B", direction="up")

        assert result["success"] is False
        assert result["kind"] == "InvalidArgument"

    def test_find_path(self, store, gpath):
        assert _find_path(store, gpath, "A", "B")["paths"] == [["A", "B"]]
        assert _find_path(store, gpath, "B", "A")["paths"] == []

    def test_get_node_types(self, store, gpath):
        assert _get_node_types(store, gpath) == {"types": {"Workflow": 1, "Concept": 1}}

    def test_list_layer(self, store, gpath):
        result = _list_layer(store, gpath, "conceptual")

        assert [n["id"] for n in result["nodes"]] == ["B"]

    def test_list_layer_not_found(self, store, gpath):
        result = _list_layer(store, gpath, "technical")

        assert result["kind"] == "LayerNotFound"
        assert result["error"] == "Layer not found: technical"

    def test_verify_graph(self, store, gpath):
        result = _verify_graph(store, gpath)

        assert result["valid"] is True
        assert result["stats"]["nodes"] == 2


# ─────────────────────────────────────────────────────────────────────────────
# Mutation tools
# ─────────────────────────────────────────────────────────────────────────────


class TestMutationTools:
    """Tests for the mutation tool functions."""

    def test_add_node(self, store, gpath):
        result = _add_node(store, gpath, "C", "Function", "charge()", description="Charges")

        assert result["success"] is True
        assert result["node"]["description"] == "Charges"
        assert result["mutation"]["operation"] == "add_node"
        assert store.get(gpath).find_by_id("C") is not None

    def test_add_node_duplicate(self, store, gpath):
        result = _add_node(store, gpath, "A", "Workflow", "again")

        assert result == {
            "success": False,
            "error": "Node already exists: A",
            "kind": "DuplicateId",
        }

    def test_add_node_missing_label(self, store, gpath):
        result = _add_node(store, gpath, "C", "Function", "")

        assert result["kind"] == "MissingField"

    def test_add_edge(self, store, gpath):
        _add_node(store, gpath, "C", "Function", "charge()")

        result = _add_edge(store, gpath, "A", "C", "calls", layer="technical")

        assert result["success"] is True
        assert result["edge"] == {
            "source": "A",
            "target": "C",
            "type": "calls",
            "layer": "technical",
        }

    def test_add_edge_unknown_target(self, store, gpath):
        result = _add_edge(store, gpath, "A", "Z", "calls")

        assert result["kind"] == "UnknownNode"
        assert result["error"] == "Target node not found: Z"

    def test_add_edge_duplicate(self, store, gpath):
        result = _add_edge(store, gpath, "A", "B", "includes")

        assert result["kind"] == "DuplicateEdge"

    def test_add_to_layer(self, store, gpath):
        result = _add_to_layer(store, gpath, "A", "technical")

        assert result["success"] is True
        assert result["created_layer"] is True

    def test_add_to_layer_already_member(self, store, gpath):
        assert _add_to_layer(store, gpath, "A", "workflow")["kind"] == "AlreadyInLayer"

    def test_remove_node_reports_cascade(self, store, gpath):
        result = _remove_node(store, gpath, "B")

        assert result["success"] is True
        assert result["removed_edges"] == 1
        assert store.get(gpath).edge_count() == 0

    def test_remove_node_unknown(self, store, gpath):
        assert _remove_node(store, gpath, "Z")["kind"] == "UnknownNode"

    def test_remove_edge(self, store, gpath):
        result = _remove_edge(store, gpath, "A", "B", "includes")

        assert result["success"] is True
        assert result["removed"] == {"source": "A", "target": "B", "type": "includes"}

    def test_remove_edge_not_found(self, store, gpath):
        assert _remove_edge(store, gpath, "B", "A", "includes")["kind"] == "EdgeNotFound"


# ─────────────────────────────────────────────────────────────────────────────
# Session tools
# ─────────────────────────────────────────────────────────────────────────────


class TestSessionTools:
    """Tests for save, discard, undo and the mutation log."""

    def test_save_graph(self, store, gpath, graph_file):
        _add_node(store, gpath, "C", "Function", "charge()")

        result = _save_graph(store, gpath)

        assert result["success"] is True
        assert result["path"] == gpath
        assert result["backup"] == f"{gpath}.backup"
        assert not store.is_loaded(gpath)
        saved = json.loads(graph_file.read_text(encoding="utf-8"))
        assert [n["id"] for n in saved["nodes"]] == ["A", "B", "C"]

    def test_save_graph_without_backup(self, store, gpath):
        result = _save_graph(store, gpath, backup=False)

        assert result["backup"] is None

    def test_save_graph_write_failure(self, gpath, graph_file):
        from layergraph.storage import MemoryStorage
        from layergraph.store import GraphStore

        class BrokenStorage(MemoryStorage):
            def write(self, location, data):
                raise OSError("disk full")

        store = GraphStore(BrokenStorage({gpath: graph_file.read_bytes()}))
        _add_node(store, gpath, "C", "Function", "charge()")

        result = _save_graph(store, gpath)

        assert result["success"] is False
        assert result["kind"] == "IOError"
        assert "disk full" in result["error"]
        assert store.get(gpath).find_by_id("C") is not None

    def test_discard_changes(self, store, gpath):
        _add_node(store, gpath, "C", "Function", "charge()")

        result = _discard_changes(store, gpath)

        assert result["discarded_mutations"] == 1
        assert _get_node(store, gpath, "C")["kind"] == "NodeNotFound"

    def test_undo_last_mutation(self, store, gpath):
        _remove_node(store, gpath, "B")

        result = _undo_last_mutation(store, gpath)

        assert result["success"] is True
        assert result["mutation"]["operation"] == "remove_node"
        assert _find_path(store, gpath, "A", "B")["paths"] == [["A", "B"]]

    def test_undo_with_empty_log(self, store, gpath):
        result = _undo_last_mutation(store, gpath)

        assert result == {
            "success": False,
            "error": "No mutations to undo",
            "kind": "NothingToUndo",
        }

    def test_get_mutation_log(self, store, gpath):
        _add_node(store, gpath, "C", "Function", "charge()")
        _add_edge(store, gpath, "A", "C", "calls")
        _add_to_layer(store, gpath, "C", "technical")

        result = _get_mutation_log(store, gpath, limit=2)

        assert result["count"] == 2
        assert [m["operation"] for m in result["mutations"]] == ["add_node", "add_edge"]
        assert result["pending"] is True

    def test_get_mutation_log_non_positive_limit(self, store, gpath):
        _add_node(store, gpath, "C", "Function", "charge()")
        _add_node(store, gpath, "D", "Function", "refund()")

        for limit in (0, -1):
            result = _get_mutation_log(store, gpath, limit=limit)

            assert result["mutations"] == []
            assert result["count"] == 0
            assert result["pending"] is True


# ─────────────────────────────────────────────────────────────────────────────
# Server registration
# ─────────────────────────────────────────────────────────────────────────────


class TestCreateServer:
    """Tests for create_server."""

    @pytest.fixture
    def server(self, store):
        return create_server(store=store, config=ConfigLoader.from_dict(DEFAULT_CONFIG))

    def test_all_tools_registered(self, server):
        tool_names = {t.name for t in server._tool_manager._tools.values()}

        assert TOOL_NAMES <= tool_names

    def test_search_tool_uses_configured_limit(self, store, graph_file):
        config = ConfigLoader.from_dict({**DEFAULT_CONFIG, "search": {"limit": 1}})
        server = create_server(store=store, config=config)
        tool_fn = server._tool_manager._tools["search_graph"].fn

        result = tool_fn(str(graph_file), "")

        assert result["count"] == 1

    def test_tools_share_the_store(self, server, store, graph_file):
        tools = server._tool_manager._tools
        gpath = str(graph_file)

        tools["add_node"].fn(gpath, "C", "Function", "charge()")

        assert store.get(gpath).find_by_id("C") is not None
        assert tools["get_mutation_log"].fn(gpath)["count"] == 1

    def test_save_tool_uses_configured_backup(self, store, graph_file):
        config = ConfigLoader.from_dict(
            {**DEFAULT_CONFIG, "save": {"backup": False, "sort": True, "indent": 2}}
        )
        server = create_server(store=store, config=config)

        result = server._tool_manager._tools["save_graph"].fn(str(graph_file))

        assert result["success"] is True
        assert result["backup"] is None
