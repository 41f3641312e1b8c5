"""Tests for topics CLI commands."""

import pytest

from labsite.cli import Context, main
from labsite.core.colors import topic_color
from labsite.topics.commands import gradient_cmd, list_cmd, remove_cmd, set_cmd


@pytest.fixture
def dry_obj(store):
    obj = Context(dry_run=True)
    obj._store = store
    return obj


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------


def test_list(runner, cli_obj):
    result = runner.invoke(list_cmd, [], obj=cli_obj)

    assert result.exit_code == 0
    assert "Topics (6)" in result.output


def test_list_unused(runner, cli_obj, store):
    result = runner.invoke(list_cmd, ["--unused"], obj=cli_obj)
    assert "No topics to show." in result.output

    store.register_topic_color("memory", hue=30)
    result = runner.invoke(list_cmd, ["--unused"], obj=cli_obj)
    assert "memory" in result.output


# ---------------------------------------------------------------------------
# set
# ---------------------------------------------------------------------------


class TestSet:
    def test_register_new(self, runner, cli_obj, store):
        result = runner.invoke(set_cmd, ["memory", "--hue", "30"], obj=cli_obj)

        assert "Registered" in result.output
        assert "(hue 30)" in result.output
        assert store.get_topic_color("memory").color == topic_color(30)

    def test_recolor_used_topic(self, runner, cli_obj, store):
        result = runner.invoke(set_cmd, ["computational modeling", "--color", "#f0d0a8"], obj=cli_obj)

        assert "#a8a8f0 (hue 240) ->" in result.output
        assert "Refreshed 2 project(s)" in result.output
        assert store.projects.get("project-2").topic_color("computational modeling") == "#f0d0a8"

    def test_needs_exactly_one(self, runner, cli_obj):
        result = runner.invoke(set_cmd, ["memory"], obj=cli_obj)
        assert "Give exactly one of --color or --hue." in result.output

        result = runner.invoke(set_cmd, ["memory", "--hue", "3", "--color", "#ffffff"], obj=cli_obj)
        assert "Give exactly one of --color or --hue." in result.output

    def test_bad_color(self, runner, cli_obj, store):
        result = runner.invoke(set_cmd, ["memory", "--color", "teal"], obj=cli_obj)

        assert "Not a hex color" in result.output
        assert "memory" not in store.topics

    def test_hue_out_of_range(self, runner, cli_obj):
        result = runner.invoke(set_cmd, ["memory", "--hue", "400"], obj=cli_obj)
        assert result.exit_code == 2

    def test_dry_run(self, runner, dry_obj, store):
        result = runner.invoke(set_cmd, ["computational modeling", "--hue", "10"], obj=dry_obj)

        assert "refresh 2 project(s)" in result.output
        assert store.get_topic_color("computational modeling").hue == 240

    def test_saved_to_site(self, mock_site_root, runner, read_stored):
        runner.invoke(main, ["topics", "set", "memory", "--hue", "90"])
        assert read_stored("topic_colors")["memory"]["hue"] == 90


# ---------------------------------------------------------------------------
# remove
# ---------------------------------------------------------------------------


class TestRemove:
    def test_remove_unused(self, runner, cli_obj, store):
        store.register_topic_color("memory", hue=30)

        result = runner.invoke(remove_cmd, ["memory"], obj=cli_obj)

        assert "Removed topic 'memory'" in result.output
        assert "memory" not in store.topics

    def test_refuses_used_topic(self, runner, cli_obj, store):
        result = runner.invoke(remove_cmd, ["computational modeling"], obj=cli_obj)

        assert "is still used by:" in result.output
        assert "computational modeling" in store.topics

    def test_unknown(self, runner, cli_obj):
        result = runner.invoke(remove_cmd, ["memory"], obj=cli_obj)
        assert "Topic not registered" in result.output

    def test_dry_run(self, runner, dry_obj, store):
        store.register_topic_color("memory", hue=30)

        result = runner.invoke(remove_cmd, ["memory"], obj=dry_obj)

        assert "would remove 'memory'" in result.output
        assert "memory" in store.topics


# ---------------------------------------------------------------------------
# gradient
# ---------------------------------------------------------------------------


def test_gradient(runner, cli_obj):
    result = runner.invoke(gradient_cmd, ["project-2"], obj=cli_obj)
    assert result.output == "linear-gradient(to right, #a8f0f0 0%, #a8a8f0 100%)\n"


def test_gradient_direction(runner, cli_obj):
    result = runner.invoke(gradient_cmd, ["project-2", "--direction", "135deg"], obj=cli_obj)
    assert result.output.startswith("linear-gradient(135deg, ")


def test_gradient_unknown_project(runner, cli_obj):
    result = runner.invoke(gradient_cmd, ["project-9"], obj=cli_obj)
    assert "Project not found: project-9" in result.output
