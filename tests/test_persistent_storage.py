import json
from datetime import datetime

from persistent_storage import DrinkEntry, KeyValueStore, parse_datetime


def test_set_persists_to_json_file(store):
    store.set("currentAmount", 750)

    with open(store.state_file) as f:
        assert json.load(f) == {"currentAmount": 750}
    assert not store.state_file.with_suffix('.tmp').exists()


def test_values_survive_new_instance(store):
    store.set("targetAmount", 2500)
    store.set("notificationPermissions", True)

    reopened = KeyValueStore(str(store.data_dir))

    assert reopened.get_int("targetAmount") == 2500
    assert reopened.get_bool("notificationPermissions") is True


def test_typed_getters_fall_back_to_defaults(store):
    store.set("currentAmount", "not a number")

    assert store.get_int("currentAmount", 5) == 5
    assert store.get_int("missing") == 0
    assert store.get_bool("missing", True) is True
    assert store.get("missing") is None


def test_unencodable_value_is_rejected_and_others_kept(store):
    store.set("currentAmount", 100)

    assert store.set("drinkEntries", [object()]) is False
    assert store.get("drinkEntries") is None
    assert KeyValueStore(str(store.data_dir)).get_int("currentAmount") == 100


def test_corrupt_file_loads_empty(tmp_path, capsys):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "app_state.json").write_text("{not json")

    store = KeyValueStore(str(data_dir))

    assert store.keys() == []
    assert "Error reading" in capsys.readouterr().out


def test_write_failure_keeps_in_memory_value(store, monkeypatch):
    monkeypatch.setattr(store, "state_file", store.data_dir / "missing-dir" / "app_state.json")

    assert store.set("currentAmount", 300) is False
    assert store.get_int("currentAmount") == 300


def test_reload_picks_up_external_changes(store):
    other = KeyValueStore(str(store.data_dir))
    other.set("currentAmount", 900)

    assert store.get("currentAmount") is None
    store.reload()
    assert store.get_int("currentAmount") == 900


def test_drink_entry_round_trip_keeps_id():
    entry = DrinkEntry(amount=330, timestamp=datetime(2026, 10, 19, 8, 15))

    restored = DrinkEntry.from_dict(json.loads(json.dumps(entry.to_dict())))

    assert restored == entry


def test_parse_datetime_handles_bad_values():
    assert parse_datetime(None) is None
    assert parse_datetime("yesterday-ish") is None
    assert parse_datetime("2026-10-18T07:00:00") == datetime(2026, 10, 18, 7, 0)


def test_set_many_writes_valid_values_and_skips_bad_ones(store):
    assert store.set_many({"currentAmount": 300, "targetAmount": 1800, "broken": object()}) is False

    reopened = KeyValueStore(str(store.data_dir))
    assert reopened.get_int("currentAmount") == 300
    assert reopened.get_int("targetAmount") == 1800
    assert reopened.get("broken") is None


def test_set_keeps_keys_written_by_another_instance(store):
    store.set("currentAmount", 100)
    KeyValueStore(str(store.data_dir)).set("targetAmount", 2400)

    store.set("currentAmount", 200)

    reopened = KeyValueStore(str(store.data_dir))
    assert reopened.get_int("currentAmount") == 200
    assert reopened.get_int("targetAmount") == 2400
