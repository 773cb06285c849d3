"""
Unit tests for query tokenization and compilation.
"""

import pytest

from efu_finder.models.search_query import QueryError, SearchField
from efu_finder.tools.normalizer import build_record
from efu_finder.tools.query_planner import (
    compile_query,
    anchor_wildcard,
    interpret_token,
    is_anchored,
    tokenize_query,
    wildcard_to_regex,
)


def make_record(path, attributes="32", index=0):
    return build_record(index, [path, "1", "", "", attributes])


class TestTokenizeQuery:
    """Test cases for query tokenization."""

    def test_whitespace_split(self):
        """Test splitting on runs of whitespace."""
        assert tokenize_query("  foo   bar\tbaz ") == ["foo", "bar", "baz"]

    def test_double_quotes_group(self):
        """Test that double quotes keep words together and are removed."""
        assert tokenize_query('"my file" other') == ["my file", "other"]

    def test_single_quotes_group(self):
        """Test that single quotes also group words."""
        assert tokenize_query("'a b' c") == ["a b", "c"]

    def test_other_quote_is_literal(self):
        """Test that a single quote inside double quotes is kept."""
        assert tokenize_query('"it\'s here"') == ["it's here"]

    def test_quotes_inside_token(self):
        """Test quoting part of a token."""
        assert tokenize_query('path:"Program Files"') == ["path:Program Files"]

    def test_unterminated_quote(self):
        """Test that an open quote extends to the end of the query."""
        assert tokenize_query('"open ended') == ["open ended"]

    def test_empty_query(self):
        """Test that an empty or blank query has no tokens."""
        assert tokenize_query("") == []
        assert tokenize_query('""') == []


class TestWildcards:
    """Test cases for wildcard translation."""

    def test_lone_outer_star_pins_other_end(self):
        """Test that a leading or trailing * pins the opposite end."""
        assert anchor_wildcard("*.txt") == r".*\.txt\Z"
        assert anchor_wildcard("rep*") == r"\Arep.*"
        assert is_anchored("*.txt")
        assert is_anchored("rep*")

    def test_inner_wildcards_stay_unanchored(self):
        """Test that patterns without a lone outer * match anywhere."""
        assert anchor_wildcard("rep?rt") == "rep.rt"
        assert anchor_wildcard("*log*") == ".*log.*"
        assert not is_anchored("rep?rt")
        assert not is_anchored("*log*")

    def test_translation_escapes_metacharacters(self):
        """Test that regex metacharacters are escaped."""
        assert wildcard_to_regex("a.b*c?") == r"a\.b.*c."


class TestInterpretToken:
    """Test cases for resolving one token into a term."""

    def test_plain_token(self):
        """Test a token with no prefixes."""
        term = interpret_token("foo")

        assert not term.negate
        assert term.field is SearchField.ALL
        assert not term.anchored

    def test_negation_and_field(self):
        """Test the ! prefix followed by a field prefix."""
        term = interpret_token("!file:foo")

        assert term.negate
        assert term.field is SearchField.FILE_NAME
        assert term.source == "foo"

    def test_field_prefix_is_case_insensitive(self):
        """Test that PATH: scopes like path:."""
        assert interpret_token("PATH:/etc").field is SearchField.PATH

    @pytest.mark.parametrize("token", ["", "!", "file:", "!path:"])
    def test_empty_after_prefixes(self, token):
        """Test that tokens with nothing left are skipped."""
        assert interpret_token(token) is None

    def test_invalid_regex(self):
        """Test that a bad expression in regex mode raises QueryError."""
        with pytest.raises(QueryError) as exc_info:
            interpret_token("foo[", regex_mode=True)

        assert exc_info.value.pattern == "foo["
        assert "foo[" in exc_info.value.message


class TestCompileQuery:
    """Test cases for compiling and matching full queries."""

    def setup_method(self):
        """Set up records for matching."""
        self.notes = make_record("C:\\docs\\notes.txt")
        self.notes_x = make_record("C:\\docs\\a.txtx")
        self.report = make_record("C:\\docs\\report.pdf")
        self.etc = make_record("/etc/hosts")
        self.foo_file = make_record("/home/foo.txt")
        self.foo_dir = make_record("/foo/bar.txt")

    def test_blank_query_matches_all(self):
        """Test that a blank query compiles to an empty plan."""
        plan = compile_query("   ")

        assert plan.is_empty()
        assert plan.matches(self.notes)

    def test_substring_match(self):
        """Test that plain tokens match anywhere in the searchable text."""
        plan = compile_query("notes")

        assert plan.matches(self.notes)
        assert not plan.matches(self.report)

    def test_case_insensitive_by_default(self):
        """Test that matching ignores case unless asked not to."""
        assert compile_query("NOTES").matches(self.notes)
        assert not compile_query("NOTES", case_sensitive=True).matches(self.notes)

    def test_star_wildcard_matches_whole_name(self):
        """Test that *.txt matches notes.txt but not a.txtx."""
        plan = compile_query("*.txt")

        assert plan.matches(self.notes)
        assert not plan.matches(self.notes_x)
        assert not plan.matches(self.report)

    def test_question_wildcard(self):
        """Test that ? matches exactly one character, anywhere in the field."""
        repart = make_record("C:\\docs\\repart")
        repoort = make_record("C:\\docs\\repoort")
        plan = compile_query("file:rep?rt")

        assert plan.matches(self.report)
        assert plan.matches(repart)
        assert not plan.matches(repoort)

    def test_trailing_star_pins_start(self):
        """Test that rep* matches names starting with rep only."""
        plan = compile_query("file:rep*")

        assert plan.matches(self.report)
        assert not compile_query("file:port*").matches(self.report)
        assert compile_query("*port*").matches(self.report)

    def test_negated_file_scope(self):
        """Test that !file:foo excludes only records whose file name contains foo."""
        plan = compile_query("!file:foo")

        assert not plan.matches(self.foo_file)
        assert plan.matches(self.foo_dir)
        assert plan.matches(self.notes)

    def test_path_scope(self):
        """Test that path:/etc matches only records whose path contains /etc."""
        plan = compile_query("path:/etc")

        assert plan.matches(self.etc)
        assert not plan.matches(self.notes)

    def test_terms_are_anded(self):
        """Test that every term must match."""
        plan = compile_query("docs notes")

        assert plan.matches(self.notes)
        assert not plan.matches(self.report)
        assert len(plan.terms) == 2

    def test_attribute_text_is_searchable(self):
        """Test that the raw attribute text is part of the searchable text."""
        hidden = make_record("C:\\x.sys", attributes="RHS")

        assert compile_query("rhs").matches(hidden)

    def test_regex_mode(self):
        """Test compiling tokens as regular expressions."""
        plan = compile_query(r"file:^notes\.txt$", regex_mode=True)

        assert plan.matches(self.notes)
        assert not plan.matches(self.notes_x)

    def test_regex_can_scope_case(self):
        """Test that an inline flag can demand exact case in regex mode."""
        upper = make_record("C:\\ABC\\x.txt")
        lower = make_record("C:\\abc\\x.txt")
        plan = compile_query("(?-i:ABC)", regex_mode=True)

        assert plan.matches(upper)
        assert not plan.matches(lower)

    def test_regex_error_carries_query(self):
        """Test that the error records the full query text."""
        with pytest.raises(QueryError) as exc_info:
            compile_query("ok (broken", regex_mode=True)

        assert exc_info.value.query == "ok (broken"
        assert exc_info.value.pattern == "(broken"

    def test_compilation_is_idempotent(self):
        """Test that compiling the same query twice filters identically."""
        records = [self.notes, self.notes_x, self.report, self.etc, self.foo_file, self.foo_dir]
        first = compile_query("!file:foo *.txt")
        second = compile_query("!file:foo *.txt")

        assert [r for r in records if first.matches(r)] == [r for r in records if second.matches(r)]
        assert str(first) == str(second)
