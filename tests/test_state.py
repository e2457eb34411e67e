import json
from datetime import datetime, timedelta, timezone

import pytest

from ipwall.errors import PersistenceError
from ipwall.state import State

T1 = datetime(2020, 1, 1, tzinfo=timezone.utc)
T2 = datetime(2020, 6, 1, 12, 30, tzinfo=timezone(timedelta(hours=2)))


def test_missing_file_is_empty(tmp_path):
    state = State.load(tmp_path / "state.json")
    assert state.last_modified == {}
    assert state.get("firehol-level2") is None


def test_save_and_load(tmp_path):
    path = tmp_path / "nested" / "state.json"
    state = State(path=path)
    state.set("firehol-level2", T1)
    state.set("custom", T2)
    state.save()

    loaded = State.load(path)
    assert loaded.get("firehol-level2") == T1
    assert loaded.get("custom") == T2
    assert loaded.get("custom").utcoffset() == timedelta(hours=2)


def test_file_format(tmp_path):
    path = tmp_path / "state.json"
    state = State(path=path)
    state.set("firehol-level2", T1)
    state.save()

    data = json.loads(path.read_text())
    assert data == {
        "last_modified": {"firehol-level2": "Wed, 01 Jan 2020 00:00:00 +0000"}
    }
    assert not (tmp_path / "state.json.tmp").exists()


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "[]",
        '{"last_modified": []}',
        '{"last_modified": {"a": "not a date"}}',
    ],
)
def test_invalid_file(tmp_path, content):
    path = tmp_path / "state.json"
    path.write_text(content)
    with pytest.raises(PersistenceError):
        State.load(path)


def test_save_failure(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    state = State(path=blocker / "state.json")
    state.set("a", T1)

    with pytest.raises(PersistenceError, match="cannot write state"):
        state.save()
