"""
Unit tests — validator: rejection rules, limit/field defaulting, filter dropping.
"""
import pytest

from src.governance.validator import sanitize_limit, validate_spec
from src.governance.whitelist import parse_whitelist
from src.nlquery.errors import (
    NoAllowedFieldsError,
    SpecValidationError,
    UnknownTableError,
    UnsupportedActionError,
)
from src.nlquery.spec import QuerySpec


# ── Helper: build a valid spec ───────────────────────────

def _valid_spec(**overrides) -> dict:
    base = {
        "action": "select",
        "table": "Blog",
        "fields": ["id", "title", "content", "createdAt"],
        "filters": [{"field": "user.username", "op": "equals", "value": "X"}],
        "limit": 3,
    }
    base.update(overrides)
    return base


# ── 0. Valid spec passes through unchanged ───────────────

def test_valid_spec_unchanged(schema):
    spec = validate_spec(_valid_spec(), schema)
    assert isinstance(spec, QuerySpec)
    assert spec.model_dump() == _valid_spec()


def test_validate_spec_auto_loads_whitelist():
    spec = validate_spec(_valid_spec())
    assert spec.table == "Blog"


# ── 1. Action / table rejection ──────────────────────────

@pytest.mark.parametrize("action", ["delete", "update", "insert", "SELECT", None, ""])
def test_non_select_rejected(schema, action):
    with pytest.raises(UnsupportedActionError, match="Only select"):
        validate_spec(_valid_spec(action=action), schema)


def test_missing_action_rejected(schema):
    raw = _valid_spec()
    del raw["action"]
    with pytest.raises(UnsupportedActionError):
        validate_spec(raw, schema)


@pytest.mark.parametrize("raw", [None, [], "select", 42])
def test_non_object_rejected(schema, raw):
    with pytest.raises(UnsupportedActionError):
        validate_spec(raw, schema)


@pytest.mark.parametrize("table", ["Secrets", "blog", "pg_catalog.pg_user", "", None, 7, ["Blog"]])
def test_unknown_table_rejected(schema, table):
    with pytest.raises(UnknownTableError, match="Table not allowed"):
        validate_spec(_valid_spec(table=table), schema)


@pytest.mark.parametrize("junk", [
    {"fields": ["nope"], "limit": -5},
    {"fields": "id", "filters": "everything", "limit": "lots"},
    {"fields": [], "filters": [{"field": "id", "op": "equals", "value": 1}], "limit": 1000},
])
def test_unknown_table_wins_regardless_of_rest(schema, junk):
    with pytest.raises(UnknownTableError):
        validate_spec(_valid_spec(table="Payroll", **junk), schema)


def test_errors_share_base_class(schema):
    with pytest.raises(SpecValidationError):
        validate_spec(_valid_spec(table="Payroll"), schema)


# ── 2. Limit ─────────────────────────────────────────────

@pytest.mark.parametrize("limit", [None, 0, -1, -100, "abc", "", [], {}, True, float("nan"), float("-inf"), -10**400])
def test_limit_defaults_to_10(schema, limit):
    assert validate_spec(_valid_spec(limit=limit), schema).limit == 10


def test_limit_missing_defaults_to_10(schema):
    raw = _valid_spec()
    del raw["limit"]
    assert validate_spec(raw, schema).limit == 10


@pytest.mark.parametrize("limit", [101, 500, 10**9, 10**400, "250", float("inf")])
def test_limit_capped_at_100(schema, limit):
    assert validate_spec(_valid_spec(limit=limit), schema).limit == 100


@pytest.mark.parametrize("limit,expected", [(1, 1), (3, 3), (100, 100), ("7", 7), (5.9, 5)])
def test_limit_in_range_kept(schema, limit, expected):
    assert validate_spec(_valid_spec(limit=limit), schema).limit == expected


def test_limit_respects_alternate_max():
    small = parse_whitelist({
        "tables": [{"name": "Widget", "fields": ["id"]}],
        "defaults": {"fields": ["id"], "limit": 2, "max_limit": 5},
    })
    assert sanitize_limit(50, small) == 5
    assert sanitize_limit(None, small) == 2


# ── 3. Fields ────────────────────────────────────────────

@pytest.mark.parametrize("fields", [None, [], "title", {"id": True}, 3])
def test_fields_default_projection(schema, fields):
    spec = validate_spec(_valid_spec(fields=fields), schema)
    assert spec.fields == ["id", "title", "createdAt"]


def test_fields_default_intersects_table(schema):
    spec = validate_spec(_valid_spec(table="User", fields=[], filters=[]), schema)
    assert spec.fields == ["id", "createdAt"]


def test_non_whitelisted_fields_removed(schema):
    spec = validate_spec(_valid_spec(fields=["id", "password", "title", "user.email"]), schema)
    assert spec.fields == ["id", "title"]


def test_fields_keep_order_and_dedupe(schema):
    spec = validate_spec(_valid_spec(fields=["createdAt", "id", "createdAt", 5]), schema)
    assert spec.fields == ["createdAt", "id"]


def test_all_fields_removed_raises(schema):
    with pytest.raises(NoAllowedFieldsError, match="No allowed fields"):
        validate_spec(_valid_spec(fields=["password", "ssn"]), schema)


def test_empty_default_projection_raises():
    bare = parse_whitelist({
        "tables": [{"name": "Widget", "fields": ["sku"]}],
        "defaults": {"fields": ["id"]},
    })
    with pytest.raises(NoAllowedFieldsError):
        validate_spec({"action": "select", "table": "Widget"}, bare)


# ── 4. Filters (dropped, never rejected) ─────────────────

@pytest.mark.parametrize("op", ["like", "regex", "EQUALS", "ne", "", None, 1, ["equals"]])
def test_unknown_operator_dropped(schema, op):
    spec = validate_spec(
        _valid_spec(filters=[
            {"field": "title", "op": op, "value": "x"},
            {"field": "title", "op": "contains", "value": "sql"},
        ]),
        schema,
    )
    assert [(f.field, f.op) for f in spec.filters] == [("title", "contains")]


@pytest.mark.parametrize("op", ["equals", "contains", "in", "lt", "lte", "gt", "gte"])
def test_every_enumerated_operator_kept(schema, op):
    value = [1, 2] if op == "in" else 1
    spec = validate_spec(_valid_spec(filters=[{"field": "likeCount", "op": op, "value": value}]), schema)
    assert len(spec.filters) == 1
    assert spec.filters[0].op == op


@pytest.mark.parametrize("entry", [
    "title = x",
    None,
    {"op": "equals", "value": "x"},
    {"field": 12, "op": "equals", "value": "x"},
    {"field": "password", "op": "equals", "value": "x"},
    {"field": "user.password", "op": "equals", "value": "x"},
    {"field": "author.username", "op": "equals", "value": "x"},
    {"field": "user.profile.bio", "op": "equals", "value": "x"},
    {"field": "id", "op": "in", "value": 3},
    {"field": "id", "op": "in", "value": [[1], 2]},
    {"field": "id", "op": "gt", "value": [1, 2]},
    {"field": "id", "op": "gt", "value": None},
    {"field": "title", "op": "contains", "value": {"$ne": ""}},
    {"field": "title", "op": "equals", "value": {"$ne": ""}},
])
def test_malformed_filter_dropped(schema, entry):
    spec = validate_spec(_valid_spec(filters=[entry]), schema)
    assert spec.filters == []


@pytest.mark.parametrize("filters", [None, "all", {"field": "title"}, 3])
def test_non_list_filters_become_empty(schema, filters):
    assert validate_spec(_valid_spec(filters=filters), schema).filters == []


def test_equals_null_kept(schema):
    spec = validate_spec(_valid_spec(filters=[{"field": "content", "op": "equals", "value": None}]), schema)
    assert spec.filters[0].value is None


def test_dropped_filters_do_not_fail_spec(schema):
    spec = validate_spec(
        _valid_spec(filters=[{"field": "title", "op": "drop table", "value": 1}] * 5),
        schema,
    )
    assert spec.filters == []
    assert spec.fields == ["id", "title", "content", "createdAt"]


def test_validator_does_not_mutate_input(schema):
    raw = _valid_spec(fields=["id", "password"], limit=999)
    validate_spec(raw, schema)
    assert raw["fields"] == ["id", "password"]
    assert raw["limit"] == 999
