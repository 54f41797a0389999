"""Shared pytest fixtures for layergraph tests."""

import json

import pytest


@pytest.fixture
def sample_data():
    """Two nodes, one edge, two layers."""
    return {
        "nodes": [
            {"id": "A", "type": "Workflow", "label": "Checkout flow"},
            {
                "id": "B",
                "type": "Concept",
                "label": "Shopping cart",
                "description": "Items selected for purchase",
            },
        ],
        "edges": [{"source": "A", "target": "B", "type": "includes"}],
        "layers": {"workflow": ["A"], "conceptual": ["B"]},
    }


@pytest.fixture
def make_graph():
    """Factory building a detached LayeredGraph from plain dicts."""
    from layergraph.graph.builder import GraphBuilder
    from layergraph.graph.document import GraphDocument

    def _make(nodes=(), edges=(), layers=None):
        document = GraphDocument.from_dict(
            {"nodes": list(nodes), "edges": list(edges), "layers": dict(layers or {})}
        )
        return GraphBuilder.from_document(document).build()

    return _make


@pytest.fixture
def sample_graph(make_graph, sample_data):
    return make_graph(sample_data["nodes"], sample_data["edges"], sample_data["layers"])


@pytest.fixture
def graph_file(tmp_path, sample_data):
    """sample_data written to graph_data.json in a temp directory."""
    path = tmp_path / "graph_data.json"
    path.write_text(json.dumps(sample_data, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def store():
    """Fresh file-backed GraphStore."""
    from layergraph.store import GraphStore

    return GraphStore()
