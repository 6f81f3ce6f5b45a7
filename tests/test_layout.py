# tests/test_layout.py
"""
Tests for line scanning, comment stripping and the indentation stack.
"""

import pytest

from turlang.layout import (
    IndentError,
    IndentStack,
    describe_indent,
    scan_lines,
    split_indent,
    strip_comment,
)


class TestStripComment:

    def test_trailing_comment(self):
        assert strip_comment("a, b # note") == "a, b "

    def test_whole_line_comment(self):
        assert strip_comment("# only a comment") == ""

    def test_hash_inside_quotes_is_a_symbol(self):
        assert strip_comment("'#' -> a, R, q") == "'#' -> a, R, q"

    def test_hash_glued_to_text_is_kept(self):
        assert strip_comment("name: issue#4") == "name: issue#4"

    def test_comment_after_quoted_hash(self):
        assert strip_comment("'#', a # tail") == "'#', a "


class TestScanLines:

    def test_blank_and_comment_lines_skipped(self):
        text = "tape: a\n\n   \n# comment\nrules:\n"
        lines = list(scan_lines(text))
        assert [ln.number for ln in lines] == [1, 5]
        assert [ln.content for ln in lines] == ["tape: a", "rules:"]

    def test_indent_split_off(self):
        (line,) = scan_lines("  \tq0:   # state\n")
        assert line.indent == "  \t"
        assert line.content == "q0:"
        assert line.column == 4
        assert line.raw == "  \tq0:   # state"

    def test_split_indent(self):
        assert split_indent("    a -> b, R, q") == ("    ", "a -> b, R, q")
        assert split_indent("x") == ("", "x")


class TestIndentStack:

    def test_starts_at_base(self):
        stack = IndentStack()
        assert stack.top == ""
        assert stack.depth == 0

    def test_push_and_dedent(self):
        stack = IndentStack()
        stack.push("  ")
        stack.push("    ")
        assert stack.depth == 2
        assert stack.dedent_to("  ") == 1
        assert stack.top == "  "
        assert stack.dedent_to("") == 1
        assert stack.depth == 0

    def test_dedent_to_current_level_closes_nothing(self):
        stack = IndentStack()
        stack.push("\t")
        assert stack.dedent_to("\t") == 0
        assert stack.depth == 1

    def test_push_requires_deeper_indent(self):
        stack = IndentStack()
        stack.push("  ")
        with pytest.raises(IndentError):
            stack.push("  ")
        with pytest.raises(IndentError):
            stack.push("\t\t\t")

    def test_tabs_and_spaces_are_not_comparable(self):
        stack = IndentStack()
        stack.push("    ")
        assert not stack.is_deeper("\t\t")
        assert stack.is_deeper("    \t")

    def test_dedent_to_unknown_level_leaves_stack_intact(self):
        stack = IndentStack()
        stack.push("  ")
        stack.push("    ")
        with pytest.raises(IndentError) as exc_info:
            stack.dedent_to(" ")
        assert exc_info.value.indent == " "
        assert stack.levels == ("", "  ", "    ")

    def test_base_cannot_be_popped(self):
        stack = IndentStack()
        with pytest.raises(IndentError):
            stack.pop()


class TestDescribeIndent:

    def test_descriptions(self):
        assert describe_indent("") == "no indentation"
        assert describe_indent(" ") == "1 space"
        assert describe_indent("    ") == "4 spaces"
        assert describe_indent("\t\t") == "2 tabs"
        assert describe_indent("  \t") == "2 spaces + 1 tab"
