"""Unit tests for MongoQueryCompiler."""

from __future__ import annotations

import logging

import pytest

from entity_store_mongo.compiler import MongoQueryCompiler, base_pipeline, match_document
from entity_store_mongo.query import EntityQuery


@pytest.fixture
def compiler() -> MongoQueryCompiler:
    return MongoQueryCompiler()


def test_match_document_maps_id() -> None:
    assert match_document({"id": "x", "status": "a"}) == {"_id": "x", "status": "a"}


def test_base_pipeline_empty_filters() -> None:
    assert base_pipeline({}) == []


def test_base_pipeline_with_filters() -> None:
    assert base_pipeline({"status": "active"}) == [{"$match": {"status": "active"}}]


def test_no_modifiers_is_noop(compiler) -> None:
    base = base_pipeline({"status": "active"})
    assert compiler.compile(base, {}) == base
    assert compiler.compile(base, EntityQuery()) == base
    assert compiler.compile([], {}) == []


def test_compile_does_not_mutate_base(compiler) -> None:
    base = base_pipeline({"status": "active"})
    compiler.compile(base, {"limit$": 2})
    assert base == [{"$match": {"status": "active"}}]


def test_native_returns_original_query(compiler) -> None:
    base = base_pipeline({"status": "active"})
    q = {"native$": True, "status": "active", "limit$": 2}
    assert compiler.compile(base, q) is q


def test_truthy_native_returns_original_query(compiler) -> None:
    q = {"native$": 1, "a": 1, "limit$": 2}
    assert compiler.compile([], q) is q


def test_native_entity_query_returned_unchanged(compiler) -> None:
    q = EntityQuery.from_mapping({"native$": [{"$match": {"a": 1}}]})
    assert compiler.compile([], q) is q


def test_stage_order_sort_limit_skip_project(compiler) -> None:
    q = {
        "status": "active",
        "fields$": ["status"],
        "skip$": 1,
        "limit$": 3,
        "sort$": {"created_at": -1},
    }
    out = compiler.compile(base_pipeline({"status": "active"}), q)
    assert out == [
        {"$match": {"status": "active"}},
        {"$sort": {"created_at": -1}},
        {"$limit": 3},
        {"$skip": 1},
        {"$project": {"status": 1, "_id": 1}},
    ]


def test_sort_ascending(compiler) -> None:
    assert compiler.compile([], {"sort$": {"name": 1}}) == [{"$sort": {"name": 1}}]


def test_sort_by_id_targets_document_id(compiler) -> None:
    assert compiler.compile([], {"sort$": {"id": -1}}) == [{"$sort": {"_id": -1}}]


def test_empty_sort_is_noop(compiler) -> None:
    assert compiler.compile([], {"sort$": {}}) == []


def test_multi_key_sort_honours_first_and_warns(compiler, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="entity_store.mongo.compiler"):
        out = compiler.compile([], {"sort$": {"a": -1, "b": 1}})
    assert out == [{"$sort": {"a": -1}}]
    assert "single-key sort" in caplog.text


def test_zero_limit_and_skip_are_noops(compiler) -> None:
    assert compiler.compile([], {"limit$": 0, "skip$": 0}) == []


def test_build_project_keeps_id(compiler) -> None:
    assert compiler.build_project(("a", "b")) == {"a": 1, "b": 1, "_id": 1}
    assert compiler.build_project(()) is None


def test_build_project_id_field(compiler) -> None:
    assert compiler.build_project(("id", "a")) == {"_id": 1, "a": 1}
