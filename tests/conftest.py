import pytest
from fastapi.testclient import TestClient

import main
from engagement import SnapshotStore, StatsEngine


class FakeClock:
    """Stands in for the UTC date source so day rollover can be driven."""

    def __init__(self, today: str = "2024-05-01"):
        self.today = today

    def __call__(self) -> str:
        return self.today


@pytest.fixture
def data_path(tmp_path):
    return tmp_path / "stats-data.json"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(data_path, clock):
    return StatsEngine(SnapshotStore(data_path), today=clock)


@pytest.fixture
def public_dir(tmp_path):
    root = tmp_path / "public"
    root.mkdir()
    (root / "index.html").write_text("<h1>Games</h1>", encoding="utf-8")
    (root / "app.js").write_text("console.log('hi');", encoding="utf-8")
    (root / "blob.xyz").write_bytes(b"\x00\x01")
    (root / "img").mkdir()
    (root / "img" / "logo.svg").write_text("<svg/>", encoding="utf-8")
    (tmp_path / "secret.txt").write_text("top secret", encoding="utf-8")
    return root


@pytest.fixture
def client(monkeypatch, data_path, public_dir):
    monkeypatch.setattr(main, "DATA_PATH", str(data_path))
    monkeypatch.setattr(main, "PUBLIC_DIR", str(public_dir))
    with TestClient(main.app) as c:
        yield c
