"""Descriptor resolution, value coercion and statement building (no DB rows required)."""
from datetime import datetime

import pytest
from sqlalchemy.dialects import sqlite

from pelotas_arch.core.exceptions import (
    InvalidFilterValueError,
    UnknownFieldError,
    UnsortableFieldError,
)
from pelotas_arch.models import Account, Tracker, TrackerStatus
from pelotas_arch.repositories import EntityDescriptor, describe
from pelotas_arch.repositories.criteria import iter_filters
from pelotas_arch.schemas.query_params import FilterEntry, SortDirection, SortSpec


class TestDescriptor:
    def test_identity_from_primary_key(self):
        assert describe(Tracker).id_field == "id"

    def test_fields_and_relations(self):
        descriptor = describe(Tracker)
        assert {"id", "name", "serial", "status", "active", "owner_id", "created_at"} <= set(descriptor.fields)
        assert set(descriptor.relations) == {"owner"}
        assert descriptor.relations["owner"].many is False
        assert describe(Account).relations["trackers"].many is True

    def test_exposed_allow_list(self):
        descriptor = EntityDescriptor(Account, exposed=("id", "name"))
        assert set(descriptor.fields) == {"id", "name"}
        assert descriptor.relations == {}

    def test_restriction_carried_back_to_root(self):
        descriptor = EntityDescriptor(Account, exposed=("id", "name", "trackers"))
        _, field = descriptor.resolve("trackers.owner.name")
        assert field.name == "name"
        with pytest.raises(UnknownFieldError):
            descriptor.resolve("trackers.owner.email")
        with pytest.raises(UnknownFieldError):
            descriptor.resolve("trackers.owner.trackers.owner.email")

    def test_explicit_relation_target(self):
        trackers = EntityDescriptor(Tracker, exposed=("id", "name"))
        descriptor = EntityDescriptor(Account, targets={"trackers": trackers})
        assert descriptor.relations["trackers"].target is trackers
        descriptor.resolve("trackers.name")
        with pytest.raises(UnknownFieldError):
            descriptor.resolve("trackers.serial")

    def test_bad_relation_target(self):
        with pytest.raises(ValueError):
            EntityDescriptor(Account, targets={"owner": describe(Account)})
        with pytest.raises(ValueError):
            EntityDescriptor(Account, targets={"trackers": describe(Account)})

    def test_bad_id_field(self):
        with pytest.raises(ValueError):
            EntityDescriptor(Tracker, id_field="nope")

    def test_resolve_nested(self):
        relations, field = describe(Tracker).resolve("owner.name")
        assert [r.name for r in relations] == ["owner"]
        assert field.name == "name"

    @pytest.mark.parametrize("path", ["colour", "owner", "owner.", ".name", "owner.colour", "name.first"])
    def test_resolve_unknown(self, path):
        with pytest.raises(UnknownFieldError) as exc:
            describe(Tracker).resolve(path)
        assert exc.value.code == "UNKNOWN_FIELD"
        assert path in exc.value.message


class TestCoercion:
    def coerce(self, path, value):
        _, field = describe(Tracker).resolve(path)
        return field.coerce(value, path)

    def test_int(self):
        assert self.coerce("id", "7") == 7

    def test_bool(self):
        assert self.coerce("active", "true") is True
        assert self.coerce("active", "0") is False

    def test_enum_by_value(self):
        assert self.coerce("status", "online") is TrackerStatus.online

    def test_datetime(self):
        assert self.coerce("created_at", "2025-06-15T10:00:00") == datetime(2025, 6, 15, 10, 0)

    def test_str_unchanged(self):
        assert self.coerce("name", "42") == "42"

    def test_non_string_unchanged(self):
        assert self.coerce("id", 7) == 7

    @pytest.mark.parametrize("path,value", [
        ("id", "seven"), ("active", "maybe"), ("status", "lost"), ("created_at", "yesterday"),
    ])
    def test_invalid(self, path, value):
        with pytest.raises(InvalidFilterValueError) as exc:
            self.coerce(path, value)
        assert exc.value.path == path


class TestIterFilters:
    def test_shapes(self):
        assert list(iter_filters(None)) == []
        assert list(iter_filters({"a": "1"})) == [("a", "1")]
        assert list(iter_filters([FilterEntry(field="a", value="1"), ("b", 2), {"c": 3}])) == [
            ("a", "1"), ("b", 2), ("c", 3),
        ]


class TestBuildQuery:
    def compile(self, stmt):
        return stmt.compile(dialect=sqlite.dialect())

    def test_filter_values_are_bound(self, trackers):
        hostile = "x' OR '1'='1"
        compiled = self.compile(trackers.build_query({"name": hostile}))
        assert hostile not in str(compiled)
        assert hostile in compiled.params.values()

    def test_nested_filter_uses_exists(self, trackers):
        sql = str(self.compile(trackers.build_query({"owner.name": "ann"})))
        assert "EXISTS" in sql
        assert "JOIN" not in sql

    def test_default_order_is_id(self, trackers):
        sql = str(self.compile(trackers.build_query()))
        assert sql.rstrip().endswith("ORDER BY trackers.id ASC")

    def test_sort_by_id_not_repeated(self, trackers):
        sql = str(self.compile(trackers.build_query(sort=[SortSpec(field="id", direction=SortDirection.DESC)])))
        assert sql.count("trackers.id ASC") == 0
        assert "trackers.id DESC" in sql

    def test_nested_sort_joins_once(self, trackers):
        sort = [SortSpec(field="owner.name"), SortSpec(field="owner.id", direction=SortDirection.DESC)]
        sql = str(self.compile(trackers.build_query(sort=sort)))
        assert sql.count("LEFT OUTER JOIN") == 1

    def test_sort_across_collection_rejected(self, accounts):
        with pytest.raises(UnsortableFieldError):
            accounts.build_query(sort=[SortSpec(field="trackers.name")])

    def test_unknown_sort_field(self, trackers):
        with pytest.raises(UnknownFieldError):
            trackers.build_query(sort=[SortSpec(field="colour")])
