from __future__ import annotations

import json
from pathlib import Path

from catalog_client.auth.token_store import TokenStore


def test_token_store_roundtrip_under_fixed_key(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "client_state.json"
    store = TokenStore(path)

    assert store.load() is None
    store.save("abc")

    assert store.load() == "abc"
    assert json.loads(path.read_text(encoding="utf-8")) == {"access_token": "abc"}


def test_token_store_clear_keeps_other_keys(tmp_path: Path) -> None:
    path = tmp_path / "client_state.json"
    path.write_text(json.dumps({"access_token": "abc", "theme": "dark"}), encoding="utf-8")
    store = TokenStore(path)

    store.clear()
    store.clear()

    assert store.load() is None
    assert json.loads(path.read_text(encoding="utf-8")) == {"theme": "dark"}


def test_token_store_treats_corrupt_file_as_anonymous(tmp_path: Path) -> None:
    path = tmp_path / "client_state.json"
    path.write_text("{not json", encoding="utf-8")

    assert TokenStore(path).load() is None
