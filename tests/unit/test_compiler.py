from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import pytest
from pydantic import BaseModel

from sqlite_entity.compiler import (
    TABLE_EXISTS_QUERY,
    BindParameter,
    compile_add_column,
    compile_create_table,
    compile_delete,
    compile_insert,
    compile_select,
    compile_table_info,
    compile_update,
    extract_bind_parameters,
    extract_predicate_parameters,
    storage_class_for,
)
from sqlite_entity.domain import Float32, Int32, SemanticType, StorageClass, UInt64, describe
from sqlite_entity.errors import SchemaError, UnsupportedTypeError


class Human(BaseModel):
    Id: int = 0
    Name: str = ""
    Age: Int32 = 0
    CreateTime: datetime = datetime.min
    IsDeleted: bool = False


@dataclass
class Reading:
    sensor: str = ""
    value: Float32 = 0.0
    counter: UInt64 = 0


@dataclass
class Attachment:
    id: int = 0
    title: str = ""
    payload: bytes = b""


class TestCreateTable:
    def test_key_first_then_fields_in_declaration_order(self):
        assert compile_create_table(describe(Human)) == (
            'CREATE TABLE "Human" ("id" INTEGER PRIMARY KEY, "Name" TEXT, "Age" INTEGER, '
            '"CreateTime" TEXT, "IsDeleted" INTEGER)'
        )

    def test_record_without_id_still_gets_key_column(self):
        assert compile_create_table(describe(Reading)) == (
            'CREATE TABLE "Reading" ("id" INTEGER PRIMARY KEY, "sensor" TEXT, '
            '"value" REAL, "counter" INTEGER)'
        )

    def test_unsupported_field_is_rejected(self):
        with pytest.raises(UnsupportedTypeError) as excinfo:
            compile_create_table(describe(Attachment))
        assert excinfo.value.field_name == "payload"
        assert excinfo.value.type_name == "bytes"

    def test_output_is_deterministic(self):
        first = compile_create_table(describe(Human))
        second = compile_create_table(describe(Human))
        assert first == second


class TestAddColumn:
    @pytest.mark.parametrize(
        ("semantic_type", "storage"),
        [
            (SemanticType.BOOLEAN, "INTEGER"),
            (SemanticType.UINT32, "INTEGER"),
            (SemanticType.FLOAT64, "REAL"),
            (SemanticType.TIMESTAMP, "TEXT"),
        ],
    )
    def test_storage_class_follows_semantic_type(self, semantic_type, storage):
        assert compile_add_column("Human", "Extra", semantic_type) == (
            f'ALTER TABLE "Human" ADD COLUMN "Extra" {storage}'
        )

    def test_missing_semantic_type_is_rejected(self):
        with pytest.raises(UnsupportedTypeError):
            compile_add_column("Human", "Blob", None)

    def test_invalid_identifier_is_rejected(self):
        with pytest.raises(SchemaError):
            compile_add_column("Human", "bad name", SemanticType.TEXT)


class TestInsert:
    def test_key_is_excluded_and_placeholders_match_columns(self):
        statement = compile_insert(describe(Human))
        assert statement.sql == (
            'INSERT INTO "Human" ("Name", "Age", "CreateTime", "IsDeleted") VALUES (?, ?, ?, ?)'
        )
        assert statement.parameter_names == ("Name", "Age", "CreateTime", "IsDeleted")

    def test_parameter_order_matches_extracted_parameters(self):
        human = Human(Name="Saito", Age=20, IsDeleted=True)
        names = tuple(param.name for param in extract_bind_parameters(human))
        assert names == compile_insert(describe(Human)).parameter_names

    def test_record_with_only_a_key_uses_default_values(self):
        @dataclass
        class Marker:
            id: int = 0

        statement = compile_insert(describe(Marker))
        assert statement.sql == 'INSERT INTO "Marker" DEFAULT VALUES'
        assert statement.parameter_names == ()


class TestSelect:
    def test_without_predicates_has_no_where_clause(self):
        assert compile_select("Human", ["id", "Name", "Age"], []) == (
            'SELECT "id", "Name", "Age" FROM "Human"'
        )

    def test_key_comes_first_then_live_order(self):
        sql = compile_select("Human", ["Age", "ID", "Name"], [])
        assert sql == 'SELECT "id", "Age", "Name" FROM "Human"'

    def test_predicates_are_joined_with_and(self):
        sql = compile_select("Human", ["id", "Name"], ["Age > @age", "IsDeleted = @deleted"])
        assert sql == 'SELECT "id", "Name" FROM "Human" WHERE Age > @age AND IsDeleted = @deleted'

    def test_live_columns_from_other_tools_are_quoted_not_validated(self):
        sql = compile_select("Human", ["id", "my notes", 'say "hi"'], [])
        assert sql == 'SELECT "id", "my notes", "say ""hi""" FROM "Human"'

    def test_table_name_is_still_validated(self):
        with pytest.raises(SchemaError):
            compile_select("Human; DROP", ["id"], [])


class TestUpdateAndDelete:
    def test_update_sets_every_non_key_field(self):
        assert compile_update(describe(Human)) == (
            'UPDATE "Human" SET "Name" = @Name, "Age" = @Age, "CreateTime" = @CreateTime, '
            '"IsDeleted" = @IsDeleted WHERE "id" = @Id'
        )

    def test_update_requires_a_key(self):
        with pytest.raises(SchemaError, match="no 'id' field"):
            compile_update(describe(Reading))

    def test_delete_by_id(self):
        assert compile_delete("Human") == 'DELETE FROM "Human" WHERE "id" = @id'


def test_schema_queries():
    assert TABLE_EXISTS_QUERY == (
        "SELECT count(*) FROM sqlite_master WHERE type='table' AND name=@name"
    )
    assert compile_table_info("Human") == "PRAGMA table_info('Human')"


def test_storage_class_for_every_semantic_type():
    for semantic_type in SemanticType:
        assert isinstance(storage_class_for(semantic_type), StorageClass)


class TestBindParameters:
    def test_booleans_and_timestamps_are_encoded(self):
        created = datetime(2024, 5, 1, 12, 30, 15, 250)
        human = Human(Id=9, Name="Saito", Age=20, CreateTime=created, IsDeleted=True)
        assert extract_bind_parameters(human) == [
            BindParameter("Name", "Saito"),
            BindParameter("Age", 20),
            BindParameter("CreateTime", "2024-05-01 12:30:15.000250"),
            BindParameter("IsDeleted", 1),
        ]

    def test_unsupported_fields_are_skipped(self):
        params = extract_bind_parameters(Attachment(id=1, title="doc", payload=b"\x00"))
        assert params == [BindParameter("title", "doc")]


class TestPredicateParameters:
    def test_name_is_taken_from_the_fragment(self):
        fragments, params = extract_predicate_parameters({"id = @id": 7, "Name = :name": "Saito"})
        assert fragments == ["id = @id", "Name = :name"]
        assert params == {"id": 7, "name": "Saito"}

    def test_explicit_bind_parameter_and_boolean_encoding(self):
        fragments, params = extract_predicate_parameters(
            {"IsDeleted = @deleted OR IsDeleted = @deleted": BindParameter("@deleted", False)}
        )
        assert params == {"deleted": 0}

    def test_fragment_without_placeholder(self):
        fragments, params = extract_predicate_parameters({"Age IS NOT NULL": None})
        assert fragments == ["Age IS NOT NULL"]
        assert params == {}

    def test_ambiguous_fragment_is_rejected(self):
        with pytest.raises(SchemaError, match="exactly one placeholder"):
            extract_predicate_parameters({"Age BETWEEN @low AND @high": 10})

    def test_conflicting_values_are_rejected(self):
        with pytest.raises(SchemaError, match="conflicting"):
            extract_predicate_parameters({"Age > @age": 10, "Age < @age": 20})

    def test_none_mapping(self):
        assert extract_predicate_parameters(None) == ([], {})
