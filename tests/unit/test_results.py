"""Unit tests for ResultNormalizer and the tagged driver results."""

from __future__ import annotations

import pytest
from pymongo.errors import OperationFailure

from entity_store_mongo.results import (
    Change,
    ChangeSet,
    Inserted,
    Many,
    ResultNormalizer,
    Single,
    Stream,
)


async def _cursor(records, fail_after: int | None = None):
    for i, record in enumerate(records):
        if fail_after is not None and i == fail_after:
            raise OperationFailure("cursor died")
        yield record


@pytest.fixture
def normalizer() -> ResultNormalizer[dict]:
    return ResultNormalizer(lambda record: {"made": record["_id"]})


@pytest.mark.asyncio
async def test_single_present(normalizer) -> None:
    assert await normalizer.one(Single({"_id": "a"})) == {"made": "a"}


@pytest.mark.asyncio
async def test_single_absent(normalizer) -> None:
    assert await normalizer.one(Single(None)) is None
    assert await normalizer.many(Single(None)) == []


@pytest.mark.asyncio
async def test_many(normalizer) -> None:
    result = Many([{"_id": "a"}, {"_id": "b"}])
    assert await normalizer.many(result) == [{"made": "a"}, {"made": "b"}]


@pytest.mark.asyncio
async def test_stream_is_drained_in_order(normalizer) -> None:
    result = Stream(_cursor([{"_id": "a"}, {"_id": "b"}, {"_id": "c"}]))
    assert await normalizer.many(result) == [
        {"made": "a"},
        {"made": "b"},
        {"made": "c"},
    ]


@pytest.mark.asyncio
async def test_stream_first_record(normalizer) -> None:
    assert await normalizer.one(Stream(_cursor([]))) is None
    assert await normalizer.one(Stream(_cursor([{"_id": "x"}]))) == {"made": "x"}


@pytest.mark.asyncio
async def test_stream_error_mid_drain_discards_records() -> None:
    made = []
    normalizer = ResultNormalizer(lambda r: made.append(r) or r)
    result = Stream(_cursor([{"_id": "a"}, {"_id": "b"}], fail_after=1))
    with pytest.raises(OperationFailure):
        await normalizer.many(result)
    assert made == []


@pytest.mark.asyncio
async def test_change_set_uses_old_values(normalizer) -> None:
    result = ChangeSet(
        [Change(old_val={"_id": "a"}), Change(old_val=None, new_val={"_id": "n"})],
        deleted=1,
    )
    assert await normalizer.many(result) == [{"made": "a"}]


@pytest.mark.asyncio
async def test_unsupported_result(normalizer) -> None:
    with pytest.raises(TypeError):
        await normalizer.many(Inserted(["x"]))  # type: ignore[arg-type]


def test_results_are_tagged() -> None:
    assert Single(None).kind == "single"
    assert Many([]).kind == "many"
    assert ChangeSet([]).kind == "changes"
    assert Inserted([]).kind == "inserted"
