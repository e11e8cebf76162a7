"""
Unit tests for WhereClause and placeholder handling.
"""

import pytest

from rangesync import ConfigurationError, WhereClause
from rangesync.sql.grammar import PostgresGrammar, SQLiteGrammar, SQLServerGrammar
from rangesync.sql.placeholders import count_placeholders, qmark_to_format


class TestWhereClause:

    def test_accessors(self):
        clause = WhereClause("tenant_id = ? AND deleted_at IS NULL", [42])

        assert clause.get_where() == "tenant_id = ? AND deleted_at IS NULL"
        assert clause.get_bindings() == (42,)

    def test_predicate_is_parenthesised(self):
        predicate = WhereClause("a = ? OR b = ?", [1, 2]).to_predicate()

        assert predicate.sql == "(a = ? OR b = ?)"
        assert predicate.bindings == (1, 2)

    def test_text_is_stripped(self):
        assert WhereClause("  active = 1 ").get_where() == "active = 1"

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_text_rejected(self, text):
        with pytest.raises(ConfigurationError, match="cannot be empty"):
            WhereClause(text)

    def test_too_few_bindings(self):
        with pytest.raises(ConfigurationError, match="2 placeholder"):
            WhereClause("a = ? AND b = ?", [1])

    def test_too_many_bindings(self):
        with pytest.raises(ConfigurationError, match="1 binding"):
            WhereClause("active = 1", [True])

    def test_question_mark_in_literal_is_not_a_placeholder(self):
        clause = WhereClause("note <> 'why?' AND id > ?", [5])

        assert clause.get_bindings() == (5,)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            WhereClause("a = ?")

    def test_bracket_identifier_resolved_by_dialect(self):
        clause = WhereClause("[odd?col] = ?", [1])

        clause.validate(SQLServerGrammar())
        clause.validate(SQLiteGrammar())
        with pytest.raises(ConfigurationError, match="for postgresql"):
            clause.validate(PostgresGrammar())

    def test_comment_placeholders_ignored_by_validate(self):
        clause = WhereClause("tenant = ? -- region = ?\nAND id > ?", [1, 2])

        clause.validate(PostgresGrammar())
        assert clause.get_bindings() == (1, 2)

    def test_trailing_line_comment_keeps_parenthesis(self):
        predicate = WhereClause("a = ? -- newest only", [1]).to_predicate()

        assert predicate.sql == "(a = ? -- newest only\n)"

    def test_commented_placeholder_is_not_counted(self):
        with pytest.raises(ConfigurationError, match="1 placeholder"):
            WhereClause("tenant = ? /* AND region = ? */", [1, 2])


class TestPlaceholders:

    @pytest.mark.parametrize(
        "sql,expected",
        [
            ("a = ?", 1),
            ("a = ? AND b IN (?, ?)", 3),
            ("a = '?'", 0),
            ('"odd?col" = ?', 1),
            ("a = 'it''s ?' AND b = ?", 1),
            ("a = ? -- b = ?", 1),
            ("a = ? -- b = ?\nAND c = ?", 2),
            ("a = ? /* b = ? */ AND c = ?", 2),
            ("a = ? /* unterminated ?", 1),
            ("a = ?/**/AND b = ?", 2),
            ("a = '--' AND b = ?", 1),
            ("[odd?col] = ?", 2),
            ("", 0),
        ],
    )
    def test_count(self, sql, expected):
        assert count_placeholders(sql) == expected

    @pytest.mark.parametrize(
        "sql,expected",
        [
            ("[odd?col] = ?", 1),
            ("[a]]?] = ?", 1),
            ("[a] = ? AND b = ?", 2),
        ],
    )
    def test_count_with_bracket_identifiers(self, sql, expected):
        assert count_placeholders(sql, brackets=True) == expected

    def test_grammar_counts_in_its_own_dialect(self):
        sql = "[x?] = ?"

        assert SQLServerGrammar().count_placeholders(sql) == 1
        assert PostgresGrammar().count_placeholders(sql) == 2

    def test_format_conversion(self):
        assert qmark_to_format("a = ? AND b = 'x?'") == "a = %s AND b = 'x?'"

    def test_format_conversion_skips_comments(self):
        assert qmark_to_format("a = ? -- b = ?\nAND c = ?") == "a = %s -- b = ?\nAND c = %s"

    def test_percent_is_doubled(self):
        assert qmark_to_format("name LIKE 'a%' AND pct > ?") == "name LIKE 'a%%' AND pct > %s"
