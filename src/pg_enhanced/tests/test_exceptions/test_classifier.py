# src/pg_enhanced/tests/test_exceptions/test_classifier.py
import re
from types import SimpleNamespace

import pytest

from pg_enhanced.exceptions.classifier import (
    CLASSIFIER_RULES,
    ClassifiedError,
    ClassifierRule,
    DatabaseErrorInput,
    classify,
    get_query_method,
)
from ..test_fixtures.driver_fixtures import FakePostgresError


def make_input(message, **kwargs) -> DatabaseErrorInput:
    return DatabaseErrorInput(message=message, **kwargs)


class TestRules:
    def test_too_many_clients(self):
        result = classify(make_input("sorry, too many clients already", query="SELECT *\nFROM t"))
        assert result == ClassifiedError(
            message="Too many database connections, try again later. Running query: SELECT *FROM t",
            is_too_many_connections_error=True,
        )
        assert result.is_retryable

    def test_query_timeout(self):
        result = classify(make_input("Query read timeout", query="SELECT 1"))
        assert result.is_timeout_error
        assert not result.is_too_many_connections_error
        assert "Query timed out. Running query: SELECT 1" in result.message

    def test_delete_foreign_key(self):
        result = classify(
            make_input(
                'update or delete on table "users" violates foreign key constraint "posts_user_fk" on table "posts"',
                detail='Key (id)=(1) is still referenced from table "posts".',
                query="DELETE FROM users WHERE id = $1",
                parameters=(1,),
            )
        )
        assert result.message == (
            'Could not DELETE item from "users" table. '
            'Detail: Key (id)=(1) is still referenced from table "posts".'
        )

    def test_insert_foreign_key(self):
        result = classify(
            make_input(
                'insert or update on table "posts" violates foreign key constraint "posts_user_fk"',
                detail='Key (user_id)=(9) is not present in table "users".',
                query="\n  INSERT INTO posts VALUES ($1, $2)",
                parameters=("post-1", 9),
            )
        )
        assert result.message == (
            'Could not INSERT item "post-1" into "posts" table. '
            'Detail: Key (user_id)=(9) is not present in table "users".'
        )

    def test_duplicate_key(self):
        result = classify(
            make_input(
                'duplicate key value violates unique constraint "users_email_key"',
                detail="Key (email)=(a@b.com) already exists.",
                table="users",
                query="INSERT INTO users ...",
                parameters=["a@b.com"],
            )
        )
        assert result.message == (
            'Could not INSERT item "a@b.com" into "users" table. '
            "Detail: Key (email)=(a@b.com) already exists."
        )
        assert not result.is_timeout_error
        assert not result.is_too_many_connections_error

    def test_duplicate_key_composite_first_parameter_is_json(self):
        result = classify(
            make_input(
                'duplicate key value violates unique constraint "docs_pkey"',
                table="docs",
                query="INSERT INTO docs VALUES ($1)",
                parameters=[{"id": 1}],
            )
        )
        assert 'item "{"id": 1}" into "docs"' in result.message

    def test_value_too_long(self):
        result = classify(
            make_input(
                "value too long for type character varying(10)",
                query='INSERT INTO "users" ("name") VALUES ($1)',
            )
        )
        assert result.message == (
            'Could not INSERT item into "users" table. '
            'A value is too long for db type "character varying(10)".'
        )

    def test_value_too_long_without_analyzable_query_falls_back(self):
        error = make_input("value too long for type character varying(10)", query="SELECT 1", detail="d")
        result = classify(error)
        assert result.message == "Unrecognized Database Error: value too long for type character varying(10). Detail: d"

    def test_missing_relation(self):
        result = classify(make_input('relation "nope" does not exist', query="SELECT * FROM nope"))
        assert result.message == 'Could not perform SELECT operation on missing table "nope".'

    def test_null_value(self):
        result = classify(
            make_input(
                'null value in column "email" violates not-null constraint',
                table="users",
                query="UPDATE users SET email = $1",
            )
        )
        assert result.message == (
            'Could not UPDATE item in "users" table. Unexpected null value for "email" column.'
        )

    def test_undefined_value(self):
        result = classify(
            make_input("UNDEFINED_VALUE: Undefined values are not allowed", args={"id": None})
        )
        assert result.message == (
            'Unexpected undefined value applying data to database. Args: {"id": null}.'
        )

    def test_unrecognized(self):
        result = classify(make_input("some other db failure", detail="nothing to add"))
        assert result == ClassifiedError(
            message="Unrecognized Database Error: some other db failure. Detail: nothing to add"
        )


class TestClassifierContract:
    def test_patterns_match_the_whole_message(self):
        # A known phrase embedded in a longer message is not a match.
        result = classify(make_input("prefix: sorry, too many clients already"))
        assert not result.is_too_many_connections_error
        assert result.message.startswith("Unrecognized Database Error:")

    def test_missing_fields_do_not_crash(self):
        result = classify(make_input('duplicate key value violates unique constraint "k"'))
        assert result.message == 'Could not  item "" into "" table. Detail: '

    def test_none_message_is_treated_as_empty(self):
        result = classify(DatabaseErrorInput(message=None))
        assert result.message == "Unrecognized Database Error: . Detail: "

    def test_classification_is_pure(self):
        error = make_input('relation "x" does not exist', query="SELECT 1")
        assert classify(error) == classify(error)

    def test_first_matching_rule_wins(self):
        always = ClassifierRule("always", re.compile(r".*"), lambda match, error: ClassifiedError("first"))
        never_reached = ClassifierRule("later", re.compile(r".*"), lambda match, error: ClassifiedError("second"))
        assert classify(make_input("anything"), rules=(always, never_reached)).message == "first"

    def test_rule_order(self):
        assert [rule.name for rule in CLASSIFIER_RULES] == [
            "too_many_clients",
            "query_timeout",
            "delete_foreign_key",
            "insert_foreign_key",
            "duplicate_key",
            "value_too_long",
            "missing_relation",
            "null_value",
            "undefined_value",
        ]


@pytest.mark.parametrize(
    "query, expected",
    [
        ("SELECT 1", "SELECT"),
        ("\n  INSERT INTO t", "INSERT"),
        ("( SELECT 1)", "SELECT"),
        ("x y", None),
        ("", None),
        (None, None),
    ],
)
def test_get_query_method(query, expected):
    assert get_query_method(query) == expected


class TestFromException:
    def test_reads_asyncpg_style_attributes(self):
        exc = FakePostgresError("boom", detail="some detail", table_name="users")
        error = DatabaseErrorInput.from_exception(exc, query="SELECT 1", parameters=(1,))
        assert error == DatabaseErrorInput(
            message="boom", detail="some detail", table="users", query="SELECT 1", parameters=(1,)
        )

    def test_reads_psycopg_style_diagnostics(self):
        class PsycopgLikeError(Exception):
            sqlstate = "23502"
            diag = SimpleNamespace(
                message_primary='null value in column "email" violates not-null constraint',
                message_detail="Failing row contains (1, null).",
                table_name="users",
            )

        error = DatabaseErrorInput.from_exception(PsycopgLikeError("full text"))
        assert error.message == 'null value in column "email" violates not-null constraint'
        assert error.detail == "Failing row contains (1, null)."
        assert error.table == "users"

    def test_unwraps_sqlalchemy_orig(self):
        wrapper = Exception("(sqlalchemy wrapper)")
        wrapper.orig = FakePostgresError("inner", table_name="t")
        error = DatabaseErrorInput.from_exception(wrapper)
        assert error.message == "inner"
        assert error.table == "t"

    def test_follows_cause_with_sqlstate(self):
        adapted = Exception("adapter message")
        adapted.__cause__ = FakePostgresError("real message")
        assert DatabaseErrorInput.from_exception(adapted).message == "real message"

    def test_plain_exception_uses_str(self):
        error = DatabaseErrorInput.from_exception(ValueError("plain"))
        assert error.message == "plain"
        assert error.detail is None

    def test_string_input(self):
        assert DatabaseErrorInput.from_exception("Query read timeout", query="SELECT 1") == DatabaseErrorInput(
            message="Query read timeout", query="SELECT 1"
        )


class TestUnencodableValues:
    """Values json can't encode are rendered with str() instead of failing the classification."""

    def test_undefined_value_with_bytes_keyed_args(self):
        result = classify(
            make_input("UNDEFINED_VALUE: Undefined values are not allowed", args={b"k": 1})
        )
        assert result.message == (
            "Unexpected undefined value applying data to database. Args: {b'k': 1}."
        )

    def test_duplicate_key_with_tuple_keyed_first_parameter(self):
        result = classify(
            make_input(
                'duplicate key value violates unique constraint "docs_pkey"',
                table="docs",
                query="INSERT INTO docs VALUES ($1)",
                parameters=[{(1, 2): "x"}],
            )
        )
        assert result.message == (
            "Could not INSERT item \"{(1, 2): 'x'}\" into \"docs\" table. Detail: "
        )

    def test_circular_args(self):
        args = []
        args.append(args)
        result = classify(make_input("UNDEFINED_VALUE: Undefined values are not allowed", args=args))
        assert result.message == "Unexpected undefined value applying data to database. Args: [[...]]."

    def test_missing_args_render_as_null(self):
        result = classify(make_input("UNDEFINED_VALUE: Undefined values are not allowed"))
        assert result.message == "Unexpected undefined value applying data to database. Args: null."
