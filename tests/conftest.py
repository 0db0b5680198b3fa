import pytest

from bfound.db import init_db, reset_engine
from bfound.workspace import Workspace


@pytest.fixture
def ws(tmp_path, monkeypatch):
    """A workspace with its own local storage, table store and buckets."""
    monkeypatch.setenv("BFOUND_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("BFOUND_DB_PATH", str(tmp_path / "remote.db"))
    monkeypatch.setenv("BFOUND_SECRET_KEY", "test-secret")
    reset_engine()  # pick up the new paths
    init_db()
    yield Workspace.open()
    reset_engine()


@pytest.fixture
def signed_in(ws):
    ws.session.sign_up("ada@example.com", "secret1", "ada")
    return ws
