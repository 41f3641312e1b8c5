"""Tests for labsite.core.topics module."""

import random

from labsite.core.colors import topic_color
from labsite.core.topics import TopicColor, TopicColorRegistry


class TestRegister:
    def test_register_color_computes_hue(self):
        registry = TopicColorRegistry()
        entry = registry.register("memory", "#a8f0a8")

        assert entry == TopicColor(name="memory", color="#a8f0a8", hue=120)
        assert registry.get("memory") == entry

    def test_register_hue_derives_color(self):
        registry = TopicColorRegistry()
        entry = registry.register_hue("memory", 240)

        assert entry.color == "#a8a8f0"
        assert entry.hue == 240

    def test_register_hue_wraps(self):
        registry = TopicColorRegistry()
        assert registry.register_hue("x", 370).hue == 10

    def test_last_writer_wins(self):
        registry = TopicColorRegistry()
        registry.register_hue("memory", 0)
        registry.register("memory", "#a8f0f0")

        assert registry.get("memory").hue == 180
        assert len(registry) == 1

    def test_get_unknown(self):
        assert TopicColorRegistry().get("nothing") is None


class TestRemove:
    def test_remove_existing(self):
        registry = TopicColorRegistry()
        registry.register_hue("memory", 0)

        assert registry.remove("memory") is True
        assert "memory" not in registry

    def test_remove_missing(self):
        assert TopicColorRegistry().remove("memory") is False


class TestEnsure:
    """Tests for resolving a project's topic list."""

    def test_even_spacing_for_new_topics(self):
        registry = TopicColorRegistry()
        resolved = registry.ensure(["a", "b", "c"])

        assert [t.hue for t in resolved] == [0, 120, 240]
        assert registry.names() == ["a", "b", "c"]

    def test_known_topics_keep_color(self):
        registry = TopicColorRegistry()
        registry.register_hue("b", 10)

        resolved = registry.ensure(["a", "b"])

        assert resolved[1].hue == 10
        assert resolved[1].color == topic_color(10)
        assert resolved[0].hue == 0

    def test_random_strategy_uses_rng(self):
        first = TopicColorRegistry().ensure(["a"], "random", random.Random(3))
        second = TopicColorRegistry().ensure(["a"], "random", random.Random(3))

        assert first == second
        assert 0 <= first[0].hue < 360

    def test_reusing_topic_across_projects(self):
        """A topic seen once keeps its color for every later project."""
        registry = TopicColorRegistry()
        first = registry.ensure(["x", "y"])
        later = registry.ensure(["z", "w", "y"])

        assert later[2] == first[1]


class TestSerialization:
    def test_to_dict(self):
        registry = TopicColorRegistry()
        registry.register_hue("memory", 60)
        assert registry.to_dict() == {"memory": {"color": "#f0f0a8", "hue": 60}}

    def test_from_dict_round_trip(self):
        registry = TopicColorRegistry()
        registry.register_hue("a", 0)
        registry.register_hue("b", 180)

        restored = TopicColorRegistry.from_dict(registry.to_dict())
        assert list(restored) == list(registry)

    def test_from_dict_skips_malformed(self):
        restored = TopicColorRegistry.from_dict(
            {
                "good": {"color": "#a8f0a8", "hue": 120},
                "bad color": {"color": "green", "hue": 120},
                "not a dict": "#a8f0a8",
            }
        )
        assert restored.names() == ["good"]

    def test_from_dict_computes_missing_hue(self):
        restored = TopicColorRegistry.from_dict({"a": {"color": "#a8a8f0"}})
        assert restored.get("a").hue == 240

    def test_from_projects_first_wins(self):
        projects = [
            {"topics_with_colors": [{"name": "shared", "color": "#f0a8a8", "hue": 0}]},
            {"topics_with_colors": [{"name": "shared", "color": "#a8f0a8", "hue": 120}]},
            {"topics_with_colors": [{"name": "broken", "color": "nope", "hue": 5}]},
        ]
        registry = TopicColorRegistry.from_projects(projects)

        assert registry.get("shared").color == "#f0a8a8"
        assert "broken" not in registry
