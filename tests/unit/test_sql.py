"""Unit tests for named parameter rewriting."""
import datetime

import pytest
from tql.exceptions import MixedParameterStyleError, ParameterNotFoundError
from tql.exceptions import UnknownDialectError
from tql.sql import RewrittenQuery, prepare_query, rewrite_query

from tests.fixtures.values import Lookup

# =============================================================================
# Substitution
# =============================================================================


class TestSubstitution:
    """Named tokens are replaced by the dialect's positional placeholders."""

    def test_postgres_single_parameter(self):
        """Test the ordinal placeholder for a single named token."""
        query = rewrite_query('SELECT * FROM tablename WHERE id = :id;', 'postgres', {'id': '123'})

        assert query.text == 'SELECT * FROM tablename WHERE id = $1;'
        assert query.args == ('123',)

    def test_postgres_multiple_parameters(self):
        """Test placeholders are numbered in occurrence order, not mapping order."""
        query = rewrite_query('SELECT * FROM tablename WHERE id = :id OR name = :name;',
                              'postgres', {'name': 'bob', 'id': '123'})

        assert query.text == 'SELECT * FROM tablename WHERE id = $1 OR name = $2;'
        assert query.args == ('123', 'bob')

    def test_repeated_name_gets_new_placeholder_each_time(self):
        """Test a name used twice binds two placeholders and two arguments."""
        query = rewrite_query('SELECT :a, :b, :a', 'postgres', {'a': 1, 'b': 2})

        assert query.text == 'SELECT $1, $2, $3'
        assert query.args == (1, 2, 1)

    @pytest.mark.parametrize('dialect', ['sqlite3', 'mysql', 'mariadb', 'pyodbc'])
    def test_qmark_dialects(self, dialect):
        """Test repeated-placeholder dialects emit a bare question mark."""
        query = rewrite_query('SELECT * FROM t WHERE id = :id AND x = :x', dialect, {'id': '123', 'x': 5})

        assert query.text == 'SELECT * FROM t WHERE id = ? AND x = ?'
        assert query.args == ('123', 5)

    @pytest.mark.parametrize('dialect', ['psycopg', 'postgresql', 'pymysql'])
    def test_format_dialects(self, dialect):
        """Test format paramstyle dialects emit %s."""
        query = rewrite_query('SELECT * FROM t WHERE id = :id', dialect, {'id': '123'})

        assert query.text == 'SELECT * FROM t WHERE id = %s'
        assert query.args == ('123',)

    def test_name_at_end_of_input(self):
        """Test a name running to the end of the text is still resolved."""
        query = rewrite_query('DELETE FROM t WHERE id = :id', 'postgres', {'id': 7})

        assert query.text == 'DELETE FROM t WHERE id = $1'
        assert query.args == (7,)

    def test_terminator_is_copied_through(self):
        """Test the character that ends a name is kept."""
        query = rewrite_query('INSERT INTO t VALUES (:a,:b)', 'sqlite3', {'a': 1, 'b': 2})

        assert query.text == 'INSERT INTO t VALUES (?,?)'

    def test_unicode_and_underscore_names(self):
        """Test letters, digits and underscores all belong to a name."""
        query = rewrite_query('SELECT :start_date2, :größe', 'postgres',
                              {'start_date2': datetime.date(2025, 1, 1), 'größe': 3})

        assert query.text == 'SELECT $1, $2'
        assert query.args == (datetime.date(2025, 1, 1), 3)

    def test_none_value_is_bound(self):
        """Test a name mapped to None is found and bound as NULL."""
        query = rewrite_query('UPDATE t SET x = :x', 'sqlite3', {'x': None})

        assert query.args == (None,)


# =============================================================================
# Literals, comments and casts
# =============================================================================


class TestLiterals:
    """Quoted text and comments are never scanned for tokens."""

    def test_colon_inside_string_literal(self):
        """Test ':name' inside a string is not a parameter."""
        query = rewrite_query("SELECT ':not_a_param', :id", 'postgres', {'id': 1})

        assert query.text == "SELECT ':not_a_param', $1"
        assert query.args == (1,)

    def test_escaped_quote_inside_literal(self):
        """Test doubled quotes keep the scanner inside the literal."""
        query = rewrite_query("SELECT 'it''s :x' WHERE id = :id", 'sqlite3', {'id': 1})

        assert query.text == "SELECT 'it''s :x' WHERE id = ?"

    def test_comments_are_copied(self):
        """Test line and block comments are skipped."""
        sql = 'SELECT 1 -- :a ?\nFROM t /* :b ? */ WHERE id = :id'
        query = rewrite_query(sql, 'sqlite3', {'id': 1})

        assert query.text == 'SELECT 1 -- :a ?\nFROM t /* :b ? */ WHERE id = ?'
        assert query.args == (1,)

    def test_postgres_cast_is_not_a_name(self):
        """Test '::' casts survive next to named tokens."""
        query = rewrite_query("SELECT :id::int, '1'::text", 'postgres', {'id': '5'})

        assert query.text == "SELECT $1::int, '1'::text"
        assert query.args == ('5',)

    def test_lone_colon_is_copied(self):
        """Test a colon not followed by a name character stays as it is."""
        query = rewrite_query('SELECT a[1 : 2], :id', 'postgres', {'id': 1})

        assert query.text == 'SELECT a[1 : 2], $1'

    def test_positional_indicator_inside_literal_is_ignored(self):
        """Test a '?' inside a string does not count as a positional placeholder."""
        query = rewrite_query("SELECT '?' AS q WHERE id = :id", 'sqlite3', {'id': 1})

        assert query.text == "SELECT '?' AS q WHERE id = ?"

    def test_percent_doubled_for_format_dialect(self):
        """Test literal percent signs are escaped once parameters are bound."""
        query = rewrite_query("SELECT * FROM t WHERE name LIKE 'A%' AND id = :id", 'psycopg', {'id': 1})

        assert query.text == "SELECT * FROM t WHERE name LIKE 'A%%' AND id = %s"

    def test_percent_untouched_without_parameters(self):
        """Test text without named tokens is returned exactly as given."""
        sql = "SELECT * FROM t WHERE name LIKE 'A%'"
        query = rewrite_query(sql, 'psycopg', {})

        assert query.text == sql


# =============================================================================
# Positional passthrough and errors
# =============================================================================


class TestPositional:
    """Queries without named tokens keep native placeholders and arguments."""

    def test_positional_args_used_verbatim(self):
        """Test native placeholders and their arguments pass through."""
        query = rewrite_query('SELECT * FROM t WHERE id = $1 AND x = $2', 'postgres', {}, ['a', 2])

        assert query == RewrittenQuery('SELECT * FROM t WHERE id = $1 AND x = $2', ('a', 2))

    def test_unused_named_parameters_fall_back_to_positional(self):
        """Test a mapping nobody references does not replace positional args."""
        query = rewrite_query('SELECT * FROM t WHERE id = ?', 'sqlite3', {'unused': 1}, ['a'])

        assert query.args == ('a',)

    @pytest.mark.parametrize(('dialect', 'sql'), [
        ('postgres', 'SELECT * FROM t WHERE id = $1 AND name = :name'),
        ('sqlite3', 'SELECT * FROM t WHERE id = ? AND name = :name'),
        ('mysql', 'SELECT * FROM t WHERE name = :name AND id = ?'),
        ('psycopg', 'SELECT * FROM t WHERE id = %s AND name = :name'),
    ])
    def test_mixed_styles_fail(self, dialect, sql):
        """Test native positional placeholders next to named tokens are rejected."""
        with pytest.raises(MixedParameterStyleError):
            rewrite_query(sql, dialect, {'name': 'x'}, ['a'])

    def test_dollar_without_digit_is_not_positional(self):
        """Test '$' alone (e.g. dollar quoting) does not count as a placeholder."""
        query = rewrite_query('SELECT $$x$$, :id', 'postgres', {'id': 1})

        assert query.text == 'SELECT $$x$$, $1'

    def test_missing_parameter(self):
        """Test an unresolved name reports the name."""
        with pytest.raises(ParameterNotFoundError) as exc_info:
            rewrite_query('SELECT * FROM t WHERE id = :id', 'postgres', {'other': 1})

        assert exc_info.value.name == 'id'
        assert "'id'" in str(exc_info.value)

    def test_unknown_dialect(self):
        """Test rewriting for an unregistered driver fails."""
        with pytest.raises(UnknownDialectError):
            rewrite_query('SELECT :id', 'oracle', {'id': 1})


# =============================================================================
# prepare_query
# =============================================================================


def test_prepare_query_with_mapping_and_record():
    """Test mapping and record sources combine into one parameter set."""
    query = prepare_query('SELECT * FROM t WHERE id = :id AND name = :name',
                          ({'name': 'bob'}, Lookup(id='123')), 'postgres')

    assert query.text == 'SELECT * FROM t WHERE id = $1 AND name = $2'
    assert query.args == ('123', 'bob')


def test_prepare_query_positional_only():
    """Test plain values are kept for native placeholders."""
    query = prepare_query('SELECT * FROM t WHERE id = ? AND x = ?', ('a', 1), 'sqlite3')

    assert query == RewrittenQuery('SELECT * FROM t WHERE id = ? AND x = ?', ('a', 1))


def test_prepare_query_no_params():
    """Test a query without parameters yields no arguments."""
    query = prepare_query('SELECT 1', (), 'sqlite3')

    assert query == RewrittenQuery('SELECT 1', ())
