"""Tests for the YAML Service Store."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from uptime_monitor.services.models import Service, ServiceType
from uptime_monitor.services.store import PersistenceError, ServiceStore


def _service(i: int, type: ServiceType = ServiceType.HTTP_GET) -> Service:
    return Service(
        id=f"id{i:03d}",
        name=f"service-{i}",
        type=type,
        host=f"10.0.0.{i}",
        port=8000 + i,
        path=f"/p{i}",
        expected_response="ok" if i % 2 else "*",
        check_interval=30 + i,
    )


def _write(path: Path, document) -> None:
    path.write_text(yaml.safe_dump(document), encoding="utf-8")


class TestSaveLoad:
    def test_round_trip(self, store: ServiceStore) -> None:
        originals = [_service(i, t) for i, t in enumerate(ServiceType)]
        originals[0].is_up = True
        originals[0].last_check_at = 12345
        originals[0].last_error = "stale"
        store.save(originals)

        loaded = store.load()
        assert [s.to_record() for s in loaded] == [s.to_record() for s in originals]
        for s in loaded:
            assert s.is_up is False
            assert s.last_check_at == 0
            assert s.last_uptime_at == 0
            assert s.last_error == ""

    def test_only_config_fields_written(self, store: ServiceStore) -> None:
        svc = _service(1, ServiceType.PING)
        svc.is_up = True
        store.save([svc])

        doc = yaml.safe_load(store.path.read_text(encoding="utf-8"))
        assert set(doc["services"][0]) == {
            "id", "name", "type", "host", "port", "path", "expectedResponse", "checkInterval",
        }
        assert doc["services"][0]["type"] == 3

    def test_numeric_looking_id_survives(self, store: ServiceStore) -> None:
        svc = _service(1)
        svc.id = "1234e5678901"
        store.save([svc])
        assert store.load()[0].id == "1234e5678901"

    def test_save_overwrites(self, store: ServiceStore) -> None:
        store.save([_service(1), _service(2)])
        store.save([_service(3)])
        assert [s.id for s in store.load()] == ["id003"]

    def test_no_temp_files_left(self, store: ServiceStore) -> None:
        store.save([_service(1)])
        assert [p.name for p in store.path.parent.iterdir()] == ["services.yaml"]

    def test_save_failure_raises_and_keeps_previous(self, store: ServiceStore, monkeypatch) -> None:
        store.save([_service(1)])

        def fail_replace(src, dst):
            raise OSError("read-only filesystem")

        monkeypatch.setattr("uptime_monitor.services.store.os.replace", fail_replace)
        with pytest.raises(PersistenceError):
            store.save([_service(2)])
        assert [s.id for s in store.load()] == ["id001"]


class TestLoadEdgeCases:
    def test_missing_file(self, store: ServiceStore) -> None:
        assert store.load() == []

    def test_empty_file(self, store: ServiceStore) -> None:
        store.path.write_text("", encoding="utf-8")
        assert store.load() == []

    def test_malformed_yaml(self, store: ServiceStore, caplog) -> None:
        store.path.write_text("services: [unclosed", encoding="utf-8")
        assert store.load() == []
        assert "Failed to parse" in caplog.text

    def test_wrong_shape(self, store: ServiceStore) -> None:
        _write(store.path, ["not", "a", "mapping"])
        assert store.load() == []
        _write(store.path, {"services": "nope"})
        assert store.load() == []

    def test_out_of_range_type_skips_entry(self, store: ServiceStore, caplog) -> None:
        good = _service(1).to_record()
        bad = _service(2).to_record()
        bad["type"] = 7
        _write(store.path, {"services": [bad, good]})

        loaded = store.load()
        assert [s.id for s in loaded] == ["id001"]
        assert "Skipping malformed service entry #0" in caplog.text

    @pytest.mark.parametrize("code", ["ping", True, None, 2.0])
    def test_non_integer_type_skips_entry(self, store: ServiceStore, code) -> None:
        bad = _service(1).to_record()
        bad["type"] = code
        _write(store.path, {"services": [bad]})
        assert store.load() == []

    @pytest.mark.parametrize(
        "field, value",
        [("port", 80.9), ("port", True), ("port", "80"), ("checkInterval", True), ("checkInterval", 30.5)],
    )
    def test_non_integer_field_skips_entry(self, store: ServiceStore, caplog, field, value) -> None:
        bad = _service(1).to_record()
        bad[field] = value
        _write(store.path, {"services": [bad, _service(2).to_record()]})

        assert [s.id for s in store.load()] == ["id002"]
        assert f"{field} must be an integer" in caplog.text

    def test_absent_integer_fields_default(self, store: ServiceStore) -> None:
        record = _service(1).to_record()
        del record["port"], record["checkInterval"]
        _write(store.path, {"services": [record]})

        loaded = store.load()[0]
        assert loaded.port == 80
        assert loaded.check_interval == 60

    def test_missing_id_skips_entry(self, store: ServiceStore) -> None:
        bad = _service(1).to_record()
        del bad["id"]
        _write(store.path, {"services": [bad, _service(2).to_record()]})
        assert [s.id for s in store.load()] == ["id002"]

    def test_duplicate_ids_keep_first(self, store: ServiceStore) -> None:
        first = _service(1).to_record()
        second = dict(first, name="duplicate")
        _write(store.path, {"services": [first, second]})
        loaded = store.load()
        assert len(loaded) == 1
        assert loaded[0].name == "service-1"

    def test_capacity_enforced_on_load(self, tmp_path: Path, caplog) -> None:
        store = ServiceStore(tmp_path / "services.yaml", max_services=3)
        _write(store.path, {"services": [_service(i).to_record() for i in range(5)]})

        loaded = store.load()
        assert [s.id for s in loaded] == ["id000", "id001", "id002"]
        assert "dropping 2 remaining entries" in caplog.text

    def test_missing_optional_fields_use_defaults(self, store: ServiceStore) -> None:
        _write(store.path, {"services": [{"id": "abc", "name": "bare", "type": 3, "host": "h"}]})
        svc = store.load()[0]
        assert svc.port == 80
        assert svc.path == "/"
        assert svc.expected_response == "*"
        assert svc.check_interval == 60
