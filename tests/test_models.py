import pytest

from ipwall.models import BUILTIN_SOURCES, Source, TargetAction


class TestTargetAction:
    @pytest.mark.parametrize("value", ["drop", "Drop", "DROP", " drop "])
    def test_parse_case_insensitive(self, value):
        assert TargetAction.parse(value) is TargetAction.DROP

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="unknown target"):
            TargetAction.parse("accept")

    def test_args(self):
        assert TargetAction.DROP.to_args() == ["DROP"]
        assert TargetAction.REJECT.to_args() == ["REJECT"]
        assert TargetAction.TARPIT.to_args() == ["TARPIT", "--tarpit"]

    def test_str(self):
        assert str(TargetAction.TARPIT) == "TARPIT --tarpit"


class TestSource:
    def test_builtin_sources(self):
        assert [s.name for s in BUILTIN_SOURCES.values()] == [
            "firehol-level1",
            "firehol-level2",
            "firehol-level3",
        ]
        assert BUILTIN_SOURCES[2].url == (
            "https://iplists.firehol.org/files/firehol_level2.netset"
        )

    def test_set_name_is_stable(self):
        a = Source("spamhaus-drop", "https://a.example/drop.txt")
        b = Source("spamhaus-drop", "https://b.example/other.txt")
        assert a.set_name == b.set_name == "ipwall-spamhaus-drop"

    def test_distinct_names_distinct_sets(self):
        assert Source("a", "u").set_name != Source("b", "u").set_name

    @pytest.mark.parametrize("name", ["", "has space", "tab\there", "nul\x00", "x" * 25])
    def test_invalid_names(self, name):
        with pytest.raises(ValueError):
            Source(name, "https://example.org")

    def test_longest_allowed_name(self):
        assert len(Source("x" * 24, "u").set_name) == 31
