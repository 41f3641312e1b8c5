"""Tests for content CLI commands."""

import json
from unittest.mock import patch

import pytest

from labsite.cli import main
from labsite.content.commands import add as add_cmd


@pytest.fixture
def site(mock_site_root, runner):
    """A mock site whose store has been opened (and seeded) once."""
    result = runner.invoke(main, ["content", "list", "projects", "--json"])
    assert result.exit_code == 0
    return mock_site_root


def _json(runner, *args):
    result = runner.invoke(main, ["content", *args, "--json"])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------


class TestList:
    def test_seeds_store_files(self, site):
        store_dir = site / ".labsite" / "store"
        assert (store_dir / "projects.json").exists()
        assert (store_dir / "topic_colors.json").exists()

    def test_table(self, site, runner):
        result = runner.invoke(main, ["content", "list", "projects"])

        assert result.exit_code == 0
        assert "Projects (3 found)" in result.output

    def test_json(self, site, runner):
        data = _json(runner, "list", "people")
        assert [p["id"] for p in data] == ["member-1", "member-2", "member-3", "member-4"]

    def test_query(self, site, runner):
        data = _json(runner, "list", "people", "-q", "okafor")
        assert [p["name"] for p in data] == ["Mira Okafor"]

    def test_where_matches_list_membership(self, site, runner):
        data = _json(runner, "list", "projects", "-w", "team=Mira Okafor")
        assert [p["id"] for p in data] == ["project-2", "project-3"]

    def test_where_scalar(self, site, runner):
        data = _json(runner, "list", "projects", "-w", "status=completed")
        assert [p["id"] for p in data] == ["project-3"]

    def test_where_malformed(self, site, runner):
        result = runner.invoke(main, ["content", "list", "projects", "-w", "status"])
        assert result.exit_code == 2

    def test_no_matches(self, site, runner):
        result = runner.invoke(main, ["content", "list", "news", "-q", "zebra"])
        assert "No news found" in result.output

    def test_unknown_kind(self, site, runner):
        result = runner.invoke(main, ["content", "list", "widgets"])
        assert result.exit_code == 2


class TestShow:
    def test_show(self, site, runner):
        result = runner.invoke(main, ["content", "show", "software", "software-2"])

        assert result.exit_code == 0
        assert "switchbench" in result.output

    def test_not_found(self, site, runner):
        result = runner.invoke(main, ["content", "show", "jobs", "job-9"])
        assert "Job not found: job-9" in result.output


def test_stats(site, runner):
    result = runner.invoke(main, ["content", "stats", "people"])

    assert result.exit_code == 0
    assert "Total people: 4" in result.output


def test_fields(runner):
    result = runner.invoke(main, ["content", "fields", "jobs"])

    assert result.exit_code == 0
    assert "Jobs Fields" in result.output
    assert "is_open" in result.output


# ---------------------------------------------------------------------------
# Adding
# ---------------------------------------------------------------------------


class TestAdd:
    def test_add_person(self, site, runner, read_stored):
        result = runner.invoke(main, ["content", "add", "people", "-s", "name=Noor Haddad", "-s", "role=PhD student"])

        assert result.exit_code == 0
        assert "Added person" in result.output
        assert read_stored("people")[-1]["name"] == "Noor Haddad"

    def test_add_with_id(self, site, runner, read_stored):
        runner.invoke(main, ["content", "add", "news", "--id", "news-launch", "-s", "title=Site launch"])
        assert read_stored("news")[-1]["id"] == "news-launch"

    def test_add_project_links_team(self, site, runner, read_stored):
        result = runner.invoke(
            main,
            ["content", "add", "projects", "--id", "project-4", "-s", "title=Memory", "-s", "team=Lukas Hahn"],
        )

        assert result.exit_code == 0
        people = {p["id"]: p for p in read_stored("people")}
        assert people["member-4"]["projects"] == ["project-3", "project-4"]
        assert "memory" not in read_stored("topic_colors")

    def test_add_project_registers_topics(self, site, runner, read_stored):
        runner.invoke(main, ["content", "add", "projects", "-s", "title=Memory", "-s", "topics=memory,attention"])

        registry = read_stored("topic_colors")
        assert "memory" in registry
        assert "attention" in registry

    def test_unknown_field(self, site, runner):
        result = runner.invoke(main, ["content", "add", "people", "-s", "shoe_size=44"])

        assert result.exit_code == 2
        assert "Unknown field" in result.output

    def test_derived_field(self, site, runner):
        result = runner.invoke(main, ["content", "add", "projects", "-s", "title=X", "-s", "last_updated=1"])
        assert result.exit_code == 2

    def test_missing_required(self, site, runner, read_stored):
        result = runner.invoke(main, ["content", "add", "people", "-s", "role=Visitor"])

        assert "name: a value is required." in result.output
        assert len(read_stored("people")) == 4

    def test_duplicate_name(self, site, runner, read_stored):
        result = runner.invoke(main, ["content", "add", "people", "-s", "name=Ada Reyes"])

        assert result.exit_code == 0
        assert "already exists" in result.output
        assert len(read_stored("people")) == 4

    def test_dry_run(self, site, runner, read_stored):
        result = runner.invoke(main, ["-n", "content", "add", "news", "-s", "title=Draft"])

        assert "Dry run - would add news" in result.output
        assert len(read_stored("news")) == 3

    def test_unsaved_change_reported(self, runner, cli_obj, backend):
        backend.quota_bytes = 1

        result = runner.invoke(add_cmd, ["people", "-s", "name=Noor Haddad"], obj=cli_obj)

        assert "Could not save people" in result.output
        assert cli_obj.store.people.search(name="Noor Haddad")


# ---------------------------------------------------------------------------
# Editing fields
# ---------------------------------------------------------------------------


class TestSet:
    def test_set_bool(self, site, runner, read_stored):
        result = runner.invoke(main, ["content", "set", "jobs", "job-2", "is_open", "yes"])

        assert result.exit_code == 0
        assert "Saved jobs" in result.output
        assert read_stored("jobs")[1]["is_open"] is True

    def test_rename_person_updates_team(self, site, runner, read_stored):
        runner.invoke(main, ["content", "set", "people", "member-2", "name", "Jonas Lind"])
        assert read_stored("projects")[0]["team"] == ["Ada Reyes", "Jonas Lind"]

    def test_set_team_list(self, site, runner, read_stored):
        runner.invoke(main, ["content", "set", "projects", "project-3", "team", "Mira Okafor"])

        people = {p["id"]: p for p in read_stored("people")}
        assert people["member-4"]["projects"] == []

    def test_unknown_field(self, site, runner):
        result = runner.invoke(main, ["content", "set", "jobs", "job-1", "salary", "lots"])
        assert "Unknown field: 'salary'" in result.output

    def test_derived_field(self, site, runner):
        result = runner.invoke(main, ["content", "set", "projects", "project-1", "topics_with_colors", "x"])
        assert "maintained by the store" in result.output

    def test_bad_value(self, site, runner):
        result = runner.invoke(main, ["content", "set", "publications", "pub-1", "year", "soon"])
        assert "Expected integer" in result.output

    def test_invalid_choice(self, site, runner, read_stored):
        result = runner.invoke(main, ["content", "set", "projects", "project-1", "status", "paused"])

        assert "not a valid choice" in result.output
        assert read_stored("projects")[0]["status"] == "ongoing"

    def test_record_not_found(self, site, runner):
        result = runner.invoke(main, ["content", "set", "jobs", "job-9", "is_open", "true"])
        assert "Job not found: job-9" in result.output

    def test_dry_run(self, site, runner, read_stored):
        result = runner.invoke(main, ["-n", "content", "set", "jobs", "job-2", "is_open", "true"])

        assert "Dry run - no changes saved." in result.output
        assert read_stored("jobs")[1]["is_open"] is False


class TestUnset:
    def test_unset(self, site, runner, read_stored):
        result = runner.invoke(main, ["content", "unset", "people", "member-1", "github"])

        assert "Saved people" in result.output
        assert "github" not in read_stored("people")[0]

    def test_required(self, site, runner):
        result = runner.invoke(main, ["content", "unset", "news", "news-1", "title"])
        assert "cannot be removed" in result.output

    def test_not_set(self, site, runner):
        result = runner.invoke(main, ["content", "unset", "people", "member-2", "github"])
        assert "was not set on member-2" in result.output

    def test_unknown_field(self, site, runner):
        result = runner.invoke(main, ["content", "unset", "people", "member-2", "shoe_size"])
        assert "Unknown field: 'shoe_size'" in result.output


class TestModify:
    def test_add_to_team(self, site, runner, read_stored):
        result = runner.invoke(main, ["content", "modify", "projects", "project-2", "team", "--add", "Lukas Hahn"])

        assert result.exit_code == 0
        people = {p["id"]: p for p in read_stored("people")}
        assert people["member-4"]["projects"] == ["project-3", "project-2"]

    def test_remove_person_project(self, site, runner, read_stored):
        runner.invoke(main, ["content", "modify", "people", "member-4", "projects", "--remove", "project-3"])
        assert read_stored("projects")[2]["team"] == ["Mira Okafor"]

    def test_replace(self, site, runner, read_stored):
        runner.invoke(main, ["content", "modify", "news", "news-2", "tags", "--replace", "software, release"])
        assert read_stored("news")[1]["tags"] == ["software", "release"]

    def test_nothing_to_do(self, site, runner):
        result = runner.invoke(main, ["content", "modify", "news", "news-2", "tags"])
        assert "Nothing to do" in result.output

    def test_not_a_list(self, site, runner):
        result = runner.invoke(main, ["content", "modify", "news", "news-2", "title", "--add", "x"])
        assert "not a list" in result.output


# ---------------------------------------------------------------------------
# Deleting and ordering
# ---------------------------------------------------------------------------


class TestDelete:
    def test_delete_cascades(self, site, runner, read_stored):
        result = runner.invoke(main, ["content", "delete", "people", "member-4", "-y"])

        assert "Deleted member-4" in result.output
        assert read_stored("projects")[2]["team"] == ["Mira Okafor"]

    def test_delete_clears_featured(self, site, runner, read_stored):
        runner.invoke(main, ["content", "delete", "projects", "project-1", "-y"])
        assert read_stored("featured")["project_id"] is None

    def test_declined(self, site, runner, read_stored):
        with patch("rich.prompt.Confirm.ask", return_value=False):
            result = runner.invoke(main, ["content", "delete", "news", "news-1"])

        assert "Aborted." in result.output
        assert len(read_stored("news")) == 3

    def test_not_found(self, site, runner):
        result = runner.invoke(main, ["content", "delete", "people", "member-9", "-y"])
        assert "Person not found: member-9" in result.output

    def test_dry_run(self, site, runner, read_stored):
        result = runner.invoke(main, ["-n", "content", "delete", "people", "member-4"])

        assert "Dry run - would delete member-4" in result.output
        assert len(read_stored("people")) == 4

    def test_delete_takes_snapshot(self, site, runner):
        runner.invoke(main, ["content", "delete", "news", "news-3", "-y"])
        assert list((site / ".labsite" / "backups").glob("news_*.json"))


class TestReorder:
    def test_reorder(self, site, runner, read_stored):
        result = runner.invoke(main, ["content", "reorder", "projects", "project-3", "project-1", "project-2"])

        assert "Reordered projects" in result.output
        assert [p["id"] for p in read_stored("projects")] == ["project-3", "project-1", "project-2"]

    def test_partial_list_deletes(self, site, runner, read_stored):
        result = runner.invoke(main, ["content", "reorder", "news", "news-2", "news-1", "-y"])

        assert "Deleted (not in list): news-3" in result.output
        assert [n["id"] for n in read_stored("news")] == ["news-2", "news-1"]

    def test_partial_list_asks_first(self, site, runner, read_stored):
        with patch("rich.prompt.Confirm.ask", return_value=False):
            result = runner.invoke(main, ["content", "reorder", "news", "news-2", "news-1"])

        assert "Aborted." in result.output
        assert len(read_stored("news")) == 3

    def test_strict_rejects_partial(self, site, runner, read_stored):
        result = runner.invoke(main, ["content", "reorder", "projects", "project-3", "project-1", "--strict"])

        assert "Reorder of projects" in result.output
        assert len(read_stored("projects")) == 3

    def test_dry_run(self, site, runner, read_stored):
        result = runner.invoke(main, ["-n", "content", "reorder", "news", "news-2"])

        assert "Would delete: news-1, news-3" in result.output
        assert len(read_stored("news")) == 3
