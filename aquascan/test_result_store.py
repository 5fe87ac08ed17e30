import json
import logging
from datetime import datetime, timezone

import pytest

from conftest import make_result
from models import Location, RiskLevel
from result_store import ResultStore


def test_first_run_starts_empty(store):
    assert store.load_all() == ()
    assert not store.path.exists()


def test_append_prepends_and_persists_snapshot(tmp_path):
    store = ResultStore(tmp_path)
    first = make_result(score=70, minutes=0)
    second = make_result(score=30, risk_level=RiskLevel.UNSAFE, minutes=5,
                         location=Location(10.0, 20.0))

    store.append(first)
    history = store.append(second)

    assert history == (second, first)
    on_disk = json.loads(store.path.read_text(encoding="utf-8"))
    assert [item["score"] for item in on_disk] == [30, 70]
    assert on_disk[0]["location"] == {"latitude": 10.0, "longitude": 20.0}

    restored = ResultStore(tmp_path).load_all()
    assert restored == (second, first)


def test_corrupt_history_starts_empty(tmp_path, caplog):
    store = ResultStore(tmp_path)
    store.path.write_text("{not json", encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        assert store.load_all() == ()

    assert "starting empty" in caplog.text


def test_wrong_shape_history_starts_empty(tmp_path):
    store = ResultStore(tmp_path)
    store.path.write_text(json.dumps({"riskLevel": "SAFE"}), encoding="utf-8")
    assert store.load_all() == ()

    store.path.write_text(json.dumps([{"score": 10}]), encoding="utf-8")
    assert store.load_all() == ()

    for payload in ("[null]", '["x"]', "[1]"):
        store.path.write_text(payload, encoding="utf-8")
        assert store.load_all() == ()

    entry = make_result().to_dict()
    entry["parameters"] = "clear"
    store.path.write_text(json.dumps([entry]), encoding="utf-8")
    assert store.load_all() == ()


@pytest.mark.parametrize("timestamp", ["yesterday", 1700000000, None])
def test_unparseable_timestamp_history_starts_empty(tmp_path, timestamp):
    store = ResultStore(tmp_path)
    entry = make_result().to_dict()
    entry["timestamp"] = timestamp
    store.path.write_text(json.dumps([entry]), encoding="utf-8")

    assert store.load_all() == ()


def test_utc_z_suffix_timestamp_loads(tmp_path):
    store = ResultStore(tmp_path)
    entry = make_result().to_dict()
    entry["timestamp"] = "2026-03-01T08:00:00.000Z"
    store.path.write_text(json.dumps([entry]), encoding="utf-8")

    (loaded,) = store.load_all()

    assert loaded.created_at == datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)


def test_append_after_corrupt_load_overwrites(tmp_path):
    store = ResultStore(tmp_path)
    store.path.write_text("garbage", encoding="utf-8")
    store.load_all()

    store.append(make_result())

    assert len(ResultStore(tmp_path).load_all()) == 1


def test_no_deduplication(store):
    result = make_result()
    store.append(result)
    store.append(result)
    assert len(store.history) == 2
