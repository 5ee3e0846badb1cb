"""
Unit tests for COPY text encoding and DDL helpers.
"""
from datetime import date, datetime
from decimal import Decimal

import pytest

from dbfload.core.errors import SerializationError
from dbfload.core.schemas import TableDefinition, TargetColumn
from dbfload.database.copy_format import encode_row, encode_value
from dbfload.database.ddl import copy_sql, create_table_sql, quote_ident, quote_table, truncate_sql


class TestCopyFormat:
    """Test suite for COPY text encoding."""

    def test_scalar_encoding(self):
        assert encode_value(None) == "\\N"
        assert encode_value(True) == "t"
        assert encode_value(False) == "f"
        assert encode_value(42) == "42"
        assert encode_value(Decimal("12.3456")) == "12.3456"
        assert encode_value(date(2023, 1, 15)) == "2023-01-15"
        assert encode_value(datetime(2023, 1, 15, 1, 2, 3)) == "2023-01-15T01:02:03"
        assert encode_value(b"\x01\xff") == "\\\\x01ff"

    def test_special_characters_escaped(self):
        assert encode_value("a\tb\nc\rd\\e") == "a\\tb\\nc\\rd\\\\e"

    def test_literal_backslash_n_is_not_null(self):
        assert encode_value("\\N") == "\\\\N"

    def test_row_encoding(self):
        assert encode_row(["ALICE", "T", "2023-01-15"]) == "ALICE\tT\t2023-01-15\n"
        assert encode_row(["BOB", None, "2023-02-20"]) == "BOB\t\\N\t2023-02-20\n"

    def test_unsupported_type(self):
        with pytest.raises(SerializationError):
            encode_value(object())


class TestDdl:
    """Test suite for identifier quoting and statement builders."""

    def test_quote_ident(self):
        assert quote_ident("name") == '"name"'
        assert quote_ident("my-table") == '"my-table"'
        assert quote_ident('bad"name') == '"bad""name"'
        with pytest.raises(ValueError):
            quote_ident("")

    def test_quote_table_with_schema(self):
        assert quote_table("public.people") == '"public"."people"'

    def test_statements(self):
        definition = TableDefinition("people", [TargetColumn("name", "varchar(20)"),
                                                TargetColumn("joined", "date")])

        assert create_table_sql(definition) == (
            'CREATE TABLE IF NOT EXISTS "people" ("name" varchar(20), "joined" date)'
        )
        assert truncate_sql("people") == 'TRUNCATE TABLE "people"'
        assert copy_sql("people", ["name", "joined"]) == 'COPY "people" ("name", "joined") FROM STDIN'
        assert copy_sql("people") == 'COPY "people" FROM STDIN'

    def test_empty_definition_rejected(self):
        with pytest.raises(ValueError):
            TableDefinition("people", [])
