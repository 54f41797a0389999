"""Tests for breadth-first path finding."""

import pytest

from layergraph.graph.query import find_path


def node(node_id):
    return {"id": node_id, "type": "T", "label": node_id.upper()}


def edge(source, target, edge_type="calls"):
    return {"source": source, "target": target, "type": edge_type}


@pytest.fixture
def chain(make_graph):
    """a -> b -> c, plus an unconnected d."""
    return make_graph(
        nodes=[node("a"), node("b"), node("c"), node("d")],
        edges=[edge("a", "b"), edge("b", "c")],
    )


class TestFindPath:
    """Tests for find_path."""

    def test_same_node(self, chain):
        assert find_path(chain, "a", "a") == [["a"]]

    def test_chain(self, chain):
        assert find_path(chain, "a", "c") == [["a", "b", "c"]]

    def test_no_path(self, chain):
        assert find_path(chain, "a", "d") == []

    def test_edges_are_directed(self, chain):
        assert find_path(chain, "c", "a") == []

    def test_depth_limit(self, chain):
        assert find_path(chain, "a", "c", max_depth=1) == []
        assert find_path(chain, "a", "c", max_depth=2) == [["a", "b", "c"]]

    def test_unknown_start(self, chain):
        assert find_path(chain, "nope", "a") == []

    def test_shortest_paths_first(self, make_graph):
        graph = make_graph(
            nodes=[node("a"), node("b"), node("c")],
            edges=[edge("a", "b"), edge("b", "c"), edge("a", "c")],
        )

        assert find_path(graph, "a", "c") == [["a", "c"], ["a", "b", "c"]]

    def test_parallel_edges_yield_parallel_paths(self, make_graph):
        graph = make_graph(
            nodes=[node("a"), node("b")],
            edges=[edge("a", "b", "calls"), edge("a", "b", "uses")],
        )

        assert find_path(graph, "a", "b") == [["a", "b"], ["a", "b"]]

    def test_stops_after_max_paths(self, make_graph):
        graph = make_graph(
            nodes=[node("a"), node("z")],
            edges=[edge("a", "z", t) for t in ("t1", "t2", "t3", "t4", "t5")],
        )

        assert len(find_path(graph, "a", "z")) == 3
        assert len(find_path(graph, "a", "z", max_paths=5)) == 5

    def test_no_node_repeats_within_a_path(self, make_graph):
        graph = make_graph(
            nodes=[node("a"), node("b"), node("c")],
            edges=[edge("a", "b"), edge("b", "a"), edge("b", "c")],
        )

        paths = find_path(graph, "a", "c")

        assert paths == [["a", "b", "c"]]
        for path in paths:
            assert len(path) == len(set(path))

    def test_visited_on_enqueue_drops_alternate_routes(self, make_graph):
        # b is reached first via a -> b, so a -> x -> b -> z is never explored
        graph = make_graph(
            nodes=[node("a"), node("b"), node("x"), node("z")],
            edges=[edge("a", "b"), edge("a", "x"), edge("x", "b"), edge("b", "z")],
        )

        assert find_path(graph, "a", "z") == [["a", "b", "z"]]
