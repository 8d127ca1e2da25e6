from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from marketledger.app import ReplayResult
from marketledger.domain.model import AuctionHouse, AuctionKey, EntityType, IndexKey, IndexName
from marketledger.ui import cli as cli_module
from tests.helpers.events import HOUSE, OWNER

if TYPE_CHECKING:
    from pathlib import Path


def _feed(tmp_path: Path) -> Path:
    path = tmp_path / "feed.jsonl"
    path.write_text("", encoding="utf-8")
    return path


def test_replay_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    captured: dict[str, object] = {}

    def fake_replay(path: Path, **kwargs: object) -> ReplayResult:
        captured["path"] = path
        captured.update(kwargs)
        return ReplayResult()

    monkeypatch.setattr(cli_module, "replay_feed", fake_replay)
    feed = _feed(tmp_path)

    cli_module.main(["replay", str(feed)])

    assert captured["path"] == feed
    assert captured["deduplicate"] is None
    assert captured["offline"] is False
    assert captured["strict"] is False
    assert captured["rpc_url"] is None
    assert captured["database_uri"] is None


def test_replay_with_flags(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    captured: dict[str, object] = {}

    def fake_replay(path: Path, **kwargs: object) -> ReplayResult:
        _ = path
        captured.update(kwargs)
        return ReplayResult(handled=3)

    monkeypatch.setattr(cli_module, "replay_feed", fake_replay)

    cli_module.main(
        [
            "--database-uri",
            "sqlite:///ledger.db",
            "replay",
            str(_feed(tmp_path)),
            "--rpc-url",
            "http://node.example",
            "--no-dedupe",
            "--offline",
            "--strict",
        ]
    )

    assert captured["database_uri"] == "sqlite:///ledger.db"
    assert captured["rpc_url"] == "http://node.example"
    assert captured["deduplicate"] is False
    assert captured["offline"] is True
    assert captured["strict"] is True


def test_replay_missing_feed_exits_with_error(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["replay", str(tmp_path / "missing.jsonl")])

    assert excinfo.value.code == 1


def test_replay_failure_exits_with_error(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_replay(*_: object, **__: object) -> ReplayResult:
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(cli_module, "replay_feed", fake_replay)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["replay", str(_feed(tmp_path))])

    assert excinfo.value.code == 1


def test_show_prints_entity_json(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    captured: dict[str, object] = {}

    def fake_show(entity_type: EntityType, key: object, **_: object) -> AuctionHouse:
        captured["entity_type"] = entity_type
        captured["key"] = key
        return AuctionHouse(address=HOUSE, owner=OWNER, name="Night Market")

    monkeypatch.setattr(cli_module, "show_entity", fake_show)

    cli_module.main(["show", "auction_house", HOUSE.upper()])

    assert captured["entity_type"] == EntityType.AUCTION_HOUSE
    assert captured["key"] == HOUSE
    assert '"name":"Night Market"' in capsys.readouterr().out


def test_show_missing_entity_exits_with_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_module, "show_entity", lambda *_, **__: None)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["show", "auction", HOUSE, "7"])

    assert excinfo.value.code == 1


def test_show_unknown_entity_type_is_rejected() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["show", "widget", "1"])

    assert excinfo.value.code == 2


def test_show_bad_index_key_is_a_validation_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["show", "index_entry", "no_such_index", "x"])

    assert excinfo.value.code == 2


def test_build_key_shapes() -> None:
    assert cli_module._build_key(EntityType.AUCTION, [HOUSE, "7"]) == AuctionKey(HOUSE, 7)
    assert cli_module._build_key(EntityType.STOREFRONT, [HOUSE.upper()]) == HOUSE
    assert cli_module._build_key(EntityType.INDEX_ENTRY, ["token_auction", HOUSE, "1"]) == (
        IndexKey(IndexName.TOKEN_AUCTION, (HOUSE, 1))
    )
    with pytest.raises(ValueError, match="index name"):
        cli_module._build_key(EntityType.INDEX_ENTRY, ["token_auction"])
