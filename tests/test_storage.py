import storage


def test_log_and_search_newest_first():
    first = storage.log_tool_call("get_claims", {}, '{"count": 0}', success=True)
    second = storage.log_tool_call("submit_claim", {"confirmation_token": "abc"}, "Error submitting claim: x", success=False)

    rows = storage.search_history()

    assert [row["id"] for row in rows] == [second, first]
    assert rows[0]["arguments"] == {"confirmation_token": "abc"}
    assert rows[0]["success"] is False
    assert rows[1]["success"] is True


def test_search_filters_by_tool_name():
    storage.log_tool_call("get_claims", {}, "a")
    storage.log_tool_call("submit_claim", {}, "b")

    rows = storage.search_history(tool_name=" submit_claim ")

    assert [row["tool_name"] for row in rows] == ["submit_claim"]
    assert rows[0]["success"] is None


def test_long_results_are_truncated():
    storage.log_tool_call("get_claims", {}, "x" * 600)

    [row] = storage.search_history()

    assert row["result_summary"] == "x" * 500 + "..."


def test_limit_is_clamped():
    for i in range(3):
        storage.log_tool_call("get_claims", {"i": i}, "ok")

    assert len(storage.search_history(limit=0)) == 1
    assert len(storage.search_history(limit=2)) == 2


def test_db_path_env_override(monkeypatch, tmp_path):
    storage.set_db_path(None)
    monkeypatch.setenv("CLAIMS_DB_PATH", str(tmp_path / "other.db"))

    assert storage.get_db_path() == tmp_path / "other.db"
