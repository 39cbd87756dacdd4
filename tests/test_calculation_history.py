import json

import pytest

import calculation_history
from calculation_history import CalculationHistory, HistoryEntry


def test_history_is_bounded():
    history = CalculationHistory(limit=3)
    for i in range(5):
        history.record(f"{i}+0", str(i))

    assert len(history) == 3
    assert [e.expression for e in history] == ["2+0", "3+0", "4+0"]
    assert history.latest() == HistoryEntry("4+0", "4")


def test_limit_must_be_positive():
    with pytest.raises(ValueError):
        CalculationHistory(limit=0)


def test_clear_and_latest_on_empty():
    history = CalculationHistory()
    history.record("1+1", "2")
    history.clear()
    assert len(history) == 0
    assert history.latest() is None


def test_save_and_load(tmp_path):
    path = tmp_path / "nested" / "history.json"
    history = CalculationHistory(limit=5, path=str(path))
    history.record("2×3", "6")
    history.record("1/3", "0.3333333333")
    history.save()

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["version"] == 1
    assert payload["entries"][0] == {"expression": "2×3", "result": "6"}

    restored = CalculationHistory(limit=5, path=str(path))
    assert restored.load() == 2
    assert restored.entries == history.entries


def test_load_keeps_newest_entries_within_limit(tmp_path):
    path = tmp_path / "history.json"
    big = CalculationHistory(limit=10, path=str(path))
    for i in range(6):
        big.record(str(i), str(i))
    big.save()

    small = CalculationHistory(limit=2, path=str(path))
    small.load()
    assert [e.result for e in small] == ["4", "5"]


def test_load_missing_file(tmp_path):
    history = CalculationHistory(path=str(tmp_path / "nope.json"))
    assert history.load() == 0


@pytest.mark.parametrize("content", ["{not json", "[]", '{"entries": [{"expression": "1"}]}'])
def test_load_ignores_malformed_file(tmp_path, caplog, content):
    path = tmp_path / "history.json"
    path.write_text(content, encoding="utf-8")
    history = CalculationHistory(path=str(path))
    history.record("1+1", "2")

    with caplog.at_level("WARNING", logger="calculation_history"):
        assert history.load() == 0
    assert len(history) == 0
    assert "ilegible" in caplog.text


def test_save_without_path_is_noop(tmp_path):
    history = CalculationHistory()
    history.record("1+1", "2")
    history.save()
    assert list(tmp_path.iterdir()) == []


def test_failed_save_removes_temp_file(tmp_path, monkeypatch):
    def broken_dump(*args, **kwargs):
        raise OSError("disco lleno")

    path = tmp_path / "history.json"
    history = CalculationHistory(path=str(path))
    history.record("1+1", "2")
    monkeypatch.setattr(calculation_history.json, "dump", broken_dump)

    with pytest.raises(OSError):
        history.save()
    assert list(tmp_path.iterdir()) == []
