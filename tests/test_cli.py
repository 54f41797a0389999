"""Tests for the layergraph command-line interface."""

import json

import pytest

from layergraph.cli import create_parser, main


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Run each CLI test from a bare repo so no outer config is picked up."""
    (tmp_path / ".git").mkdir()
    monkeypatch.chdir(tmp_path)
    for name in ("LAYERGRAPH_LOGGING_LEVEL", "LAYERGRAPH_SEARCH_LIMIT"):
        monkeypatch.delenv(name, raising=False)


class TestParser:
    """Tests for argument parsing."""

    def test_global_options(self):
        args = create_parser().parse_args(["-v", "--config", "x.toml", "stats", "g.json"])

        assert args.verbose is True
        assert str(args.config) == "x.toml"
        assert args.command == "stats"

    def test_search_options(self):
        args = create_parser().parse_args(
            [
                "search",
                "g.json",
                "auth",
                "--type",
                "Function",
                "--layer",
                "technical",
                "--limit",
                "3",
            ]
        )

        assert args.query == "auth"
        assert args.type == "Function"
        assert args.limit == 3

    def test_path_arguments(self):
        args = create_parser().parse_args(["path", "g.json", "a", "b", "--max-depth", "2"])

        assert (args.from_id, args.to_id, args.max_depth) == ("a", "b", 2)

    def test_mcp_transport_default(self):
        args = create_parser().parse_args(["mcp", "serve"])

        assert args.transport == "stdio"


class TestMain:
    """Tests for command dispatch and exit codes."""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()

    def test_verify_valid_graph(self, graph_file, capsys):
        assert main(["verify", str(graph_file)]) == 0
        assert "Graph is valid." in capsys.readouterr().out

    def test_verify_json(self, graph_file, capsys):
        assert main(["verify", str(graph_file), "--json"]) == 0

        report = json.loads(capsys.readouterr().out)
        assert report["valid"] is True
        assert report["stats"]["edges"] == 1

    def test_verify_with_issues_exits_1(self, tmp_path, capsys):
        broken = tmp_path / "broken.json"
        broken.write_text(
            json.dumps(
                {
                    "nodes": [{"id": "a", "type": "T", "label": "A"}],
                    "edges": [{"source": "a", "target": "ghost", "type": "calls"}],
                    "layers": {"l": ["a"]},
                }
            ),
            encoding="utf-8",
        )

        assert main(["verify", str(broken)]) == 1
        assert "Edge has invalid target: a --calls--> ghost" in capsys.readouterr().out

    def test_stats(self, graph_file, capsys):
        assert main(["stats", str(graph_file), "--json"]) == 0

        stats = json.loads(capsys.readouterr().out)
        assert stats["types"] == {"Workflow": 1, "Concept": 1}
        assert stats["layers"] == {"workflow": 1, "conceptual": 1}

    def test_search(self, graph_file, capsys):
        assert main(["search", str(graph_file), "cart"]) == 0

        out = capsys.readouterr().out
        assert "B (Concept)" in out
        assert "1 result(s)" in out

    def test_search_limit_from_config(self, graph_file, tmp_path, capsys):
        config = tmp_path / "lg.toml"
        config.write_text("[search]\nlimit = 1\n", encoding="utf-8")

        assert main(["--config", str(config), "search", str(graph_file), "", "--json"]) == 0

        assert len(json.loads(capsys.readouterr().out)) == 1

    def test_path_found(self, graph_file, capsys):
        assert main(["path", str(graph_file), "A", "B"]) == 0
        assert "A -> B" in capsys.readouterr().out

    def test_path_not_found(self, graph_file, capsys):
        assert main(["path", str(graph_file), "B", "A"]) == 1
        assert "No path" in capsys.readouterr().err

    def test_layer(self, graph_file, capsys):
        assert main(["layer", str(graph_file), "workflow"]) == 0
        assert "A (Workflow)" in capsys.readouterr().out

    def test_unknown_layer_is_error(self, graph_file, capsys):
        assert main(["layer", str(graph_file), "infra"]) == 1
        assert "Error: Layer not found: infra" in capsys.readouterr().err

    def test_missing_graph_file(self, tmp_path, capsys):
        assert main(["stats", str(tmp_path / "none.json")]) == 1
        assert "Graph file not found" in capsys.readouterr().err

    def test_verbose_reraises(self, tmp_path):
        from layergraph.graph.errors import GraphNotFoundError

        with pytest.raises(GraphNotFoundError):
            main(["-v", "stats", str(tmp_path / "none.json")])


class TestMcpWithoutExtra:
    """The mcp package degrades cleanly when FastMCP is missing."""

    def test_serve_reports_install_hint(self, monkeypatch, capsys):
        monkeypatch.setattr("layergraph.mcp.MCP_AVAILABLE", False)

        assert main(["mcp", "serve"]) == 1
        assert "pip install layergraph[mcp]" in capsys.readouterr().err

    def test_wrappers_raise_import_error(self, monkeypatch):
        import layergraph.mcp as lg_mcp

        monkeypatch.setattr(lg_mcp, "MCP_AVAILABLE", False)

        with pytest.raises(ImportError, match="layergraph\\[mcp\\]"):
            lg_mcp.create_server()
        with pytest.raises(ImportError):
            lg_mcp.run_server()
