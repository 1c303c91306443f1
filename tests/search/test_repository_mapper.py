from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.services.search.repository_mapper import (
    RepositoryRecord,
    map_payload_to_record,
    merge_records,
    parse_repository_payload,
)


def _item(**overrides):
    item = {
        "id": 1,
        "name": "r1",
        "owner": {"login": "o1"},
        "description": "desc",
        "language": "Java",
        "stargazers_count": 10,
        "forks_count": 2,
        "updated_at": "2023-01-01T00:00:00Z",
    }
    item.update(overrides)
    return item


def _map(item):
    payload = parse_repository_payload(item)
    return None if payload is None else map_payload_to_record(payload)


def test_maps_all_fields() -> None:
    record = _map(_item())

    assert record == RepositoryRecord(
        id=1,
        name="r1",
        owner_name="o1",
        description="desc",
        language="Java",
        stars_count=10,
        forks_count=2,
        last_updated=datetime(2023, 1, 1, tzinfo=timezone.utc),
    )


def test_absent_counts_default_to_zero() -> None:
    item = _item()
    del item["stargazers_count"]
    del item["forks_count"]

    record = _map(item)

    assert record.stars_count == 0
    assert record.forks_count == 0


def test_null_text_fields_map_to_none_not_string() -> None:
    record = _map(_item(description=None, language=None, updated_at=None, stargazers_count=None))

    assert record.description is None
    assert record.language is None
    assert record.last_updated is None
    assert record.stars_count == 0


@pytest.mark.parametrize(
    "item",
    [
        {"name": "r1", "owner": {"login": "o1"}},
        {"id": 1, "owner": {"login": "o1"}},
        {"id": 1, "name": "r1"},
        {"id": 1, "name": "r1", "owner": {}},
        {"id": 1, "name": "r1", "owner": {"login": None}},
        {"id": None, "name": "r1", "owner": {"login": "o1"}},
        "not-an-object",
    ],
)
def test_items_missing_essential_fields_are_rejected(item) -> None:
    assert parse_repository_payload(item) is None


def test_malformed_timestamp_raises() -> None:
    with pytest.raises(ValueError):
        _map(_item(updated_at="yesterday"))


def test_offset_timestamp_compares_equal_to_same_instant_in_utc() -> None:
    record = _map(_item(updated_at="2023-01-01T02:00:00+02:00"))

    assert record.last_updated == datetime(2023, 1, 1, tzinfo=timezone.utc)


def test_merge_overwrites_every_field_and_keeps_identity() -> None:
    existing = RepositoryRecord(id=7, name="old", owner_name="a", description="x", stars_count=1)
    candidate = RepositoryRecord(id=7, name="new", owner_name="b", language="Go", stars_count=5, forks_count=3)

    merged = merge_records(existing, candidate)

    assert merged == candidate
    assert merged.id == existing.id
    assert existing.name == "old"
