from __future__ import annotations

from useradmin import serve
from useradmin.settings import Settings


def test_main_runs_uvicorn_with_settings(monkeypatch):
    calls = []
    monkeypatch.setattr(serve, "get_settings", lambda: Settings(host="0.0.0.0", port=9001, log_level="DEBUG"))
    monkeypatch.setattr(serve.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    serve.main()

    assert calls == [("useradmin.main:app", {"host": "0.0.0.0", "port": 9001, "log_level": "debug"})]
