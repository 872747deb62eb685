"""CLI command tests using Click CliRunner.

Strategy: patch get_components at each command module's import point so the
commands run against real stores rooted in tmp_path.
"""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def run(runner, components):
    """Invoke the CLI with every command module wired to ``components``."""

    def _run(*args, input=None):
        with (
            patch("cli.commands.facts.get_components", return_value=components),
            patch("cli.commands.checkpoint.get_components", return_value=components),
            patch("cli.commands.instincts.get_components", return_value=components),
            patch("cli.commands.compact.get_components", return_value=components),
        ):
            return runner.invoke(cli, list(args), input=input)

    return _run


class TestFacts:
    def test_save_and_show(self, run, components):
        result = run("facts", "save", "dependencies", "--fields", '{"libraries": ["retrofit"]}')
        assert result.exit_code == 0, result.output
        assert "Saved" in result.output
        assert components["fact_store"].load("dependencies").fields["libraries"] == ["retrofit"]

        result = run("facts", "show", "dependencies")
        assert result.exit_code == 0
        assert "retrofit" in result.output

    def test_save_from_file(self, run, components, tmp_path):
        path = tmp_path / "fields.json"
        path.write_text(json.dumps({"screens": ["Home"]}))
        result = run("facts", "save", "screens", "--file", str(path))
        assert result.exit_code == 0, result.output
        assert components["fact_store"].load("screens").fields["screens"] == ["Home"]

    def test_save_nothing(self, run):
        result = run("facts", "save", "screens")
        assert result.exit_code == 0
        assert "Nothing to save" in result.output

    def test_invalid_json_exits_1(self, run):
        result = run("facts", "save", "screens", "--fields", "{nope")
        assert result.exit_code == 1
        assert "invalid_input" in result.output

    def test_non_object_fields_exits_1(self, run):
        result = run("facts", "save", "screens", "--fields", "[1, 2]")
        assert result.exit_code == 1

    def test_unknown_category_rejected_by_click(self, run):
        result = run("facts", "show", "bogus")
        assert result.exit_code == 2

    def test_query(self, run, components):
        components["fact_store"].save("screens", {"screens": ["CheckoutScreen"]})
        result = run("facts", "query", "checkout")
        assert result.exit_code == 0
        assert "screens" in result.output
        assert "No matching" in run("facts", "query", "zzz").output

    def test_summary(self, run, components):
        components["fact_store"].save("screens", {"screens": []})
        result = run("facts", "summary")
        assert result.exit_code == 0
        assert "screens" in result.output

    def test_refresh(self, run, components):
        result = run("facts", "refresh", "structure", "navigation")
        assert result.exit_code == 0, result.output
        assert "refreshed" in result.output
        assert "skipped" in result.output
        assert components["fact_store"].load("structure").exists

    def test_forget(self, run, components):
        components["fact_store"].save("screens", {"screens": []})
        assert "Forgot" in run("facts", "forget", "screens").output
        assert not components["fact_store"].load("screens").exists
        assert run("facts", "forget", "screens", "--older-than", "later").exit_code == 1

    def test_expire_nothing(self, run, components):
        components["fact_store"].save("screens", {"screens": []})
        result = run("facts", "expire")
        assert result.exit_code == 0
        assert "Nothing expired" in result.output


class TestCheckpoint:
    def test_save_list_show(self, run, components):
        components["fact_store"].save("structure", {"modules": ["app"]})
        result = run("checkpoint", "save", "first", "--level", "quick", "--no-vcs")
        assert result.exit_code == 0, result.output
        assert "first" in result.output

        assert "first" in run("checkpoint", "list").output
        shown = run("checkpoint", "show", "first")
        assert shown.exit_code == 0
        assert '"level": "quick"' in shown.output

    def test_list_empty(self, run):
        assert "No checkpoints" in run("checkpoint", "list").output

    def test_restore_with_confirmation(self, run, components):
        store = components["fact_store"]
        store.save("structure", {"modules": ["app"]})
        run("checkpoint", "save", "cp", "--level", "full", "--no-vcs")
        store.save("structure", {"modules": ["changed"]})

        assert "facts to write: structure" in run("checkpoint", "diff", "cp").output

        aborted = run("checkpoint", "restore", "cp", input="n\n")
        assert aborted.exit_code == 1
        assert store.load("structure").fields["modules"] == ["changed"]

        result = run("checkpoint", "restore", "cp", "--yes")
        assert result.exit_code == 0, result.output
        assert store.load("structure").fields["modules"] == ["app"]
        assert "already matches" in run("checkpoint", "restore", "cp").output

    def test_missing_checkpoint_exits_1(self, run):
        result = run("checkpoint", "show", "missing")
        assert result.exit_code == 1
        assert "not_found" in result.output

    def test_delete_and_prune(self, run, components):
        for i in range(3):
            run("checkpoint", "save", f"cp-{i}", "--no-vcs")
        assert "Pruned 2" in run("checkpoint", "prune", "--keep", "1").output
        assert run("checkpoint", "delete", "cp-2").exit_code == 0
        assert components["checkpoints"].list() == []

    def test_export_import(self, run, components, tmp_path):
        run("checkpoint", "save", "cp", "--no-vcs")
        out = tmp_path / "cp.json"
        assert run("checkpoint", "export", "cp", "-o", str(out)).exit_code == 0
        run("checkpoint", "delete", "cp")

        result = run("checkpoint", "import", str(out))
        assert result.exit_code == 0, result.output
        assert components["checkpoints"].exists("cp")
        assert run("checkpoint", "import", str(out)).exit_code == 1


class TestInstincts:
    def test_record_and_list(self, run, components):
        for _ in range(3):
            result = run("instincts", "record", "hoist", "--confidence", "0.5", "--context", "compose")
            assert result.exit_code == 0, result.output
        assert "0.65" in result.output
        assert "hoist" in run("instincts", "list").output
        assert "No instincts" in run("instincts", "list", "--min-confidence", "0.9").output

    def test_record_invalid_confidence(self, run):
        result = run("instincts", "record", "x", "--confidence", "1.5")
        assert result.exit_code == 1

    def test_decay(self, run, components):
        run("instincts", "record", "hoist", "--confidence", "0.5")
        result = run("instincts", "decay", "--older-than", "0d")
        assert result.exit_code == 0, result.output
        assert "Decayed 1" in result.output
        assert components["instinct_store"].get("hoist").confidence == pytest.approx(0.45)

    def test_export_import(self, run, components, tmp_path):
        run("instincts", "record", "hoist", "--confidence", "0.5")
        out = tmp_path / "instincts.json"
        assert run("instincts", "export", "-o", str(out)).exit_code == 0
        components["instinct_store"].remove("hoist")

        result = run("instincts", "import", str(out))
        assert result.exit_code == 0, result.output
        assert "1 added" in result.output


class TestCompact:
    def test_plan_table(self, run, components):
        components["fact_store"].save("structure", {"modules": ["app"] * 100})
        components["instinct_store"].record({"id": "hoist", "confidence": 0.9})
        result = run("compact", "plan", "--budget", "10")
        assert result.exit_code == 0, result.output
        assert "summarize" in result.output
        assert "checkpoint" in result.output

    def test_plan_json(self, run, components):
        components["fact_store"].save("structure", {"modules": ["app"]})
        result = run("compact", "plan", "--json", "--strategy", "module-focused")
        assert result.exit_code == 0, result.output
        assert '"strategy": "module-focused"' in result.output


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output
