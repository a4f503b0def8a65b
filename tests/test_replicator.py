"""Tests for body replication and atomic rewrites."""

import pytest

from tagsync.engine import canonical_from_topic
from tagsync.errors import StaleIndexError
from tagsync.replicate import atomic_write_text
from tagsync.replicate.replicator import (
    CanonicalBody,
    expand_body,
    replicate,
    rewrite_text,
    select_targets,
)
from tagsync.tags.identity import identity
from tagsync.tags.scanner import scan
from tagsync.tags.selector import Selector, Topic
from tagsync.tags.table import TagReference, build_table


def _canonical(**bodies):
    return {
        name: CanonicalBody(identity(text), text)
        for name, text in bodies.items()
    }


class TestExpandBody:
    def test_plain_lines_copied(self):
        assert expand_body(["a", "  b", ""], {}) == ["a", "  b", ""]

    def test_nested_canonical_substituted(self):
        canonical = _canonical(inner="@tag inner\nNEW\n  deeper\n@endtag\n")
        lines = ["head", "  @tag inner", "  SRC", "  @endtag", "tail"]
        assert expand_body(lines, canonical) == [
            "head", "  @tag inner", "  NEW", "    deeper", "  @endtag", "tail",
        ]

    def test_nested_without_canonical_copied_verbatim(self):
        lines = ["head", "  @tag inner", "  SRC", "  @endtag"]
        assert expand_body(lines, {}) == lines

    def test_mutual_nesting_terminates(self):
        canonical = _canonical(
            a="@tag a\n@tag b\nx\n@endtag\n@endtag\n",
            b="@tag b\n@tag a\ny\n@endtag\n@endtag\n",
        )
        out = expand_body(canonical["a"].inner_lines, canonical, frozenset({"a"}))
        assert out == ["@tag b", "@tag a", "y", "@endtag", "@endtag"]

    def test_blank_lines_not_reindented(self):
        canonical = _canonical(inner="@tag inner\nx\n\ny\n@endtag\n")
        out = expand_body(["    @tag inner", "    @endtag"], canonical)
        assert out == ["    @tag inner", "    x", "", "    y", "    @endtag"]


class TestRewriteText:
    def test_replaces_between_original_delimiters(self):
        text = "# B\n<!-- @tag foo -->\nB\nB2\n<!-- @endtag -->\nafter\n"
        ref = TagReference("b.md", 2, "foo", "x")
        new, count = rewrite_text(text, "b.md", [ref], _canonical(foo="@tag foo\nA\n@endtag\n"))
        assert new == "# B\n<!-- @tag foo -->\nA\n<!-- @endtag -->\nafter\n"
        assert count == 1

    def test_reindents_to_target_column(self):
        text = "- item\n    @tag foo\n    old\n    @endtag\n"
        ref = TagReference("b.md", 2, "foo", "x")
        canonical = _canonical(foo="@tag foo\nline1\n  line2\n\n@endtag\n")
        new, _ = rewrite_text(text, "b.md", [ref], canonical)
        assert new == "- item\n    @tag foo\n    line1\n      line2\n\n    @endtag\n"

    def test_crlf_preserved(self):
        text = "x\r\n@tag foo\r\nB\r\n@endtag\r\n"
        ref = TagReference("b.md", 2, "foo", "x")
        new, _ = rewrite_text(text, "b.md", [ref], _canonical(foo="@tag foo\nA\n@endtag\n"))
        assert new == "x\r\n@tag foo\r\nA\r\n@endtag\r\n"

    def test_nested_target_consumed_by_outer(self):
        text = (
            "@tag outer\nold\n  @tag inner\n  oldinner\n  @endtag\n@endtag\n"
            "@tag inner\nlone\n@endtag\n"
        )
        canonical = _canonical(
            outer="@tag outer\nnew\n  @tag inner\n  whatever\n  @endtag\n@endtag\n",
            inner="@tag inner\nNEWINNER\n@endtag\n",
        )
        refs = [
            TagReference("f.md", 1, "outer", "x"),
            TagReference("f.md", 3, "inner", "x"),
            TagReference("f.md", 7, "inner", "x"),
        ]
        new, count = rewrite_text(text, "f.md", refs, canonical)
        assert new == (
            "@tag outer\nnew\n  @tag inner\n  NEWINNER\n  @endtag\n@endtag\n"
            "@tag inner\nNEWINNER\n@endtag\n"
        )
        assert count == 2

    def test_stale_line(self):
        ref = TagReference("b.md", 1, "foo", "x")
        with pytest.raises(StaleIndexError):
            rewrite_text("moved\n@tag foo\nB\n@endtag\n", "b.md", [ref],
                         _canonical(foo="@tag foo\nA\n@endtag\n"))

    def test_stale_unclosed(self):
        ref = TagReference("b.md", 1, "foo", "x")
        with pytest.raises(StaleIndexError):
            rewrite_text("@tag foo\nB\n", "b.md", [ref], _canonical(foo="@tag foo\nA\n@endtag\n"))


class TestReplicate:
    def test_scenario_two_files(self, pair):
        a, b = pair
        canonical, errors = canonical_from_topic(Selector(topic=Topic(str(a))))
        assert errors == []
        table, _ = build_table(pair)
        result = replicate(table, canonical)
        assert result.passed
        assert result.rewritten == [str(b)]
        assert b.read_text() == "# B\n@tag foo\nA\n@endtag\n"
        assert a.read_text() == "# A\n@tag foo\nA\n@endtag\n"

        table, _ = build_table(pair)
        assert table.inconsistent_tags() == []

    def test_round_trip_identity(self, write):
        src = write("src.md", "<!-- @tag foo -->\n  A\n\n  B\n<!-- @endtag -->\n")
        dst = write("dst.py", "def f():\n    # @tag foo\n    old\n    # @endtag\n")
        canonical, _ = canonical_from_topic(Selector(topic=Topic(str(src))))
        table, _ = build_table([src, dst])
        replicate(table, canonical)
        region = scan(dst.read_text(), str(dst)).regions[0]
        assert region.identity == canonical["foo"].identity

    def test_only_differing_references_targeted(self, write, pair):
        a, b = pair
        c = write("c.md", "@tag foo\nA\n@endtag\n")
        canonical, _ = canonical_from_topic(Selector(topic=Topic(str(a))))
        table, _ = build_table([a, b, c])
        targets = select_targets(table, canonical)
        assert list(targets) == [str(b)]

    def test_restrict_to_one_file(self, write, pair):
        a, b = pair
        c = write("c.md", "@tag foo\nC\n@endtag\n")
        canonical, _ = canonical_from_topic(Selector(topic=Topic(str(a))))
        table, _ = build_table([a, b, c])
        result = replicate(table, canonical, restrict=Topic(str(c)))
        assert result.rewritten == [str(c)]
        assert b.read_text() == "# B\n@tag foo\nB\n@endtag\n"

    def test_dry_run_writes_nothing(self, pair):
        a, b = pair
        canonical, _ = canonical_from_topic(Selector(topic=Topic(str(a))))
        table, _ = build_table(pair)
        result = replicate(table, canonical, dry_run=True)
        assert result.rewritten == [str(b)]
        assert result.replaced == 1
        assert b.read_text() == "# B\n@tag foo\nB\n@endtag\n"

    def test_stale_file_left_untouched_others_rewritten(self, write, pair):
        a, b = pair
        c = write("c.md", "@tag foo\nC\n@endtag\n")
        canonical, _ = canonical_from_topic(Selector(topic=Topic(str(a))))
        table, _ = build_table([a, b, c])
        b.write_text("# B\ninserted\n@tag foo\nB\n@endtag\n")
        result = replicate(table, canonical)
        assert len(result.errors) == 1
        assert isinstance(result.errors[0], StaleIndexError)
        assert b.read_text() == "# B\ninserted\n@tag foo\nB\n@endtag\n"
        assert result.rewritten == [str(c)]
        assert c.read_text() == "@tag foo\nA\n@endtag\n"

    def test_nested_canonical_applied_recursively(self, write):
        src = write("src.md", (
            "@tag outer\nshared intro\n  @tag bar\n  canonical bar\n  @endtag\n@endtag\n"
        ))
        dst = write("dst.md", (
            "@tag outer\nold intro\n  @tag bar\n  old bar\n  @endtag\n@endtag\n"
            "\n@tag bar\nelsewhere\n@endtag\n"
        ))
        canonical, errors = canonical_from_topic(Selector(topic=Topic(str(src))))
        assert errors == []
        assert set(canonical) == {"outer", "bar"}
        table, _ = build_table([src, dst])
        replicate(table, canonical)
        assert dst.read_text() == (
            "@tag outer\nshared intro\n  @tag bar\n  canonical bar\n  @endtag\n@endtag\n"
            "\n@tag bar\ncanonical bar\n@endtag\n"
        )

    def test_nested_outside_canonical_copied_verbatim(self, write):
        src = write("src.md", (
            "@tag outer\nshared intro\n  @tag bar\n  source bar\n  @endtag\n@endtag\n"
        ))
        dst = write("dst.md", (
            "@tag outer\nold intro\n  @tag bar\n  old bar\n  @endtag\n@endtag\n"
            "\n@tag bar\nelsewhere\n@endtag\n"
        ))
        canonical, _ = canonical_from_topic(Selector(topic=Topic(str(src), 1)))
        assert set(canonical) == {"outer"}
        table, _ = build_table([src, dst], Selector(tags=frozenset(canonical)))
        replicate(table, canonical)
        assert dst.read_text() == (
            "@tag outer\nshared intro\n  @tag bar\n  source bar\n  @endtag\n@endtag\n"
            "\n@tag bar\nelsewhere\n@endtag\n"
        )


class TestAtomicWrite:
    def test_replaces_content(self, tmp_path):
        target = tmp_path / "doc.md"
        target.write_text("old\n")
        atomic_write_text(target, "new\n")
        assert target.read_text() == "new\n"
        assert list(tmp_path.iterdir()) == [target]

    def test_failure_leaves_original(self, tmp_path, monkeypatch):
        target = tmp_path / "doc.md"
        target.write_text("old\n")

        def boom(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("tagsync.replicate.os.replace", boom)
        with pytest.raises(OSError):
            atomic_write_text(target, "new\n")
        assert target.read_text() == "old\n"
        assert list(tmp_path.iterdir()) == [target]

    def test_replicate_reports_write_failure(self, pair, monkeypatch):
        a, b = pair
        canonical, _ = canonical_from_topic(Selector(topic=Topic(str(a))))
        table, _ = build_table(pair)

        def boom(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("tagsync.replicate.os.replace", boom)
        result = replicate(table, canonical)
        assert not result.passed
        assert result.rewritten == []
        assert b.read_text() == "# B\n@tag foo\nB\n@endtag\n"
