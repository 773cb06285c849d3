"""
Unit tests for the compiled query data models.
"""

import re

from efu_finder.models.search_query import QueryError, QueryPlan, QueryTerm, SearchField
from efu_finder.tools.normalizer import build_record


class TestQueryTerm:
    """Test cases for QueryTerm."""

    def setup_method(self):
        """Set up a sample record."""
        self.record = build_record(0, ["C:\\Projects\\Readme.md", "10", "", "", "32"])

    def test_field_targets(self):
        """Test which values each field scope tests."""
        all_term = QueryTerm(negate=False, field=SearchField.ALL, pattern=re.compile("x"))
        name_term = QueryTerm(negate=False, field=SearchField.FILE_NAME, pattern=re.compile("x"))
        path_term = QueryTerm(negate=False, field=SearchField.PATH, pattern=re.compile("x"))

        assert all_term.get_targets(self.record) == (self.record.search_text,)
        assert name_term.get_targets(self.record) == ("Readme.md",)
        assert path_term.get_targets(self.record) == ("C:\\Projects\\Readme.md",)

    def test_case_sensitive_uses_original_text(self):
        """Test that case-sensitive terms test the unlowered text."""
        term = QueryTerm(negate=False, field=SearchField.ALL, pattern=re.compile("Readme"),
                         case_sensitive=True)

        assert term.get_targets(self.record) == (self.record.search_text,)
        assert term.matches(self.record)

    def test_anchored_tests_each_field(self):
        """Test that whole-value patterns test each field separately."""
        term = QueryTerm(negate=False, field=SearchField.ALL, pattern=re.compile(r"\.md\Z", re.I),
                         anchored=True)

        assert len(term.get_targets(self.record)) == 3
        assert term.matches(self.record)

    def test_negation(self):
        """Test that negated terms invert the match."""
        term = QueryTerm(negate=True, field=SearchField.FILE_NAME, pattern=re.compile("readme", re.I))

        assert term.is_match(self.record)
        assert not term.matches(self.record)

    def test_str_and_dict(self):
        """Test the text and dictionary forms."""
        term = QueryTerm(negate=True, field=SearchField.PATH, pattern=re.compile("etc"), source="etc")

        assert str(term) == "!path:etc"
        assert term.to_dict()['field'] == "path"
        assert term.to_dict()['pattern'] == "etc"


class TestQueryPlan:
    """Test cases for QueryPlan."""

    def test_empty_plan(self):
        """Test that a plan with no terms matches everything."""
        plan = QueryPlan()

        assert plan.is_empty()
        assert plan.matches(build_record(0, ["anything", "", "", "", ""]))
        assert str(plan) == "Query: <match all>"

    def test_negated_terms(self):
        """Test listing the excluding terms."""
        keep = QueryTerm(negate=False, field=SearchField.ALL, pattern=re.compile("a"))
        drop = QueryTerm(negate=True, field=SearchField.ALL, pattern=re.compile("b"))
        plan = QueryPlan(terms=(keep, drop), text="a !b")

        assert plan.get_negated_terms() == [drop]
        assert plan.to_dict()['text'] == "a !b"
        assert len(plan.to_dict()['terms']) == 2


class TestQueryError:
    """Test cases for QueryError."""

    def test_attributes(self):
        """Test the error message and context."""
        error = QueryError("Invalid regular expression '(': missing )", pattern="(", query="a (")

        assert str(error) == "Invalid regular expression '(': missing )"
        assert error.pattern == "("
        assert error.query == "a ("
