"""Tests for LayeredGraph.undo_last."""

from layergraph.graph.document import dump_document


def snapshot(graph):
    return dump_document(graph.document)


class TestUndoLast:
    """Each mutation can be reversed exactly."""

    def test_empty_log(self, sample_graph):
        assert sample_graph.undo_last() is None

    def test_undo_add_node(self, sample_graph):
        before = snapshot(sample_graph)
        sample_graph.add_node("C", "Function", "charge()")

        entry = sample_graph.undo_last()

        assert entry.operation == "add_node"
        assert snapshot(sample_graph) == before
        assert sample_graph.find_by_id("C") is None
        assert dict(sample_graph.node_types()) == {"Workflow": 1, "Concept": 1}
        assert not sample_graph.has_pending_changes()

    def test_undo_add_edge(self, sample_graph):
        before = snapshot(sample_graph)
        sample_graph.add_edge("B", "A", "describes")

        sample_graph.undo_last()

        assert snapshot(sample_graph) == before
        assert list(sample_graph.iter_outgoing_edges("B")) == []

    def test_undo_add_to_new_layer_removes_layer(self, sample_graph):
        sample_graph.add_to_layer("A", "technical")

        sample_graph.undo_last()

        assert not sample_graph.has_layer("technical")

    def test_undo_add_to_existing_layer_keeps_layer(self, sample_graph):
        sample_graph.add_to_layer("B", "workflow")

        sample_graph.undo_last()

        assert sample_graph.layer_members("workflow") == ["A"]

    def test_undo_remove_node_restores_cascade(self, make_graph):
        graph = make_graph(
            nodes=[
                {"id": "a", "type": "T", "label": "A"},
                {"id": "b", "type": "T", "label": "B"},
                {"id": "c", "type": "U", "label": "C"},
            ],
            edges=[
                {"source": "a", "target": "b", "type": "calls"},
                {"source": "b", "target": "c", "type": "calls"},
                {"source": "c", "target": "a", "type": "calls"},
            ],
            layers={"one": ["a", "b", "c"], "two": ["b"]},
        )
        before = snapshot(graph)

        graph.remove_node("b")
        graph.undo_last()

        assert snapshot(graph) == before
        assert [e.target for e in graph.iter_outgoing_edges("b")] == ["c"]
        assert [e.source for e in graph.iter_incoming_edges("b")] == ["a"]

    def test_undo_remove_edge(self, sample_graph):
        before = snapshot(sample_graph)
        sample_graph.remove_edge("A", "B", "includes")

        sample_graph.undo_last()

        assert snapshot(sample_graph) == before
        assert sample_graph.find_edge("A", "B", "includes") is not None

    def test_undo_in_reverse_order(self, sample_graph):
        before = snapshot(sample_graph)
        sample_graph.add_node("C", "Function", "charge()")
        sample_graph.add_edge("A", "C", "calls")
        sample_graph.add_to_layer("C", "technical")

        undone = [sample_graph.undo_last().operation for _ in range(3)]

        assert undone == ["add_to_layer", "add_edge", "add_node"]
        assert snapshot(sample_graph) == before
