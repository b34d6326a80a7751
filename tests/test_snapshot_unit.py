"""Unit tests for SnapshotStore."""

import json
import os
from unittest.mock import patch

import pytest

from anime_update_bot.errors import (
    CorruptSnapshotError,
    SnapshotNotFoundError,
    SnapshotPersistError,
)
from anime_update_bot.models import Item
from anime_update_bot.snapshot import SnapshotStore


def make_item(name: str) -> Item:
    link = f"https://ani.gamer.com.tw/animeVideo.php?sn={name}"
    return Item(
        title=f"動畫 {name}",
        link=link,
        content=f"【更新通知】動畫 {name} [3]\n{link}",
        image=f"https://p2.bahamut.com.tw/B/ACG/c/{name}.JPG",
        time="10/19 23:30",
    )


class TestSnapshotStoreUnit:
    """Unit tests for SnapshotStore."""

    @pytest.fixture(autouse=True)
    def setup_store(self, tmp_path):
        self.path = tmp_path / "state" / "data.json"
        self.store = SnapshotStore(self.path)
        self.items = [make_item("C"), make_item("B"), make_item("A")]

    def test_save_then_load_round_trip(self):
        assert self.store.save(self.items) is True

        assert self.store.load() == self.items

    def test_file_layout_is_list_of_records_newest_first(self):
        self.store.save(self.items)

        records = json.loads(self.path.read_text(encoding="utf-8"))
        assert [r["title"] for r in records] == ["動畫 C", "動畫 B", "動畫 A"]
        assert list(records[0]) == ["title", "link", "content", "image", "time"]
        # Non-ASCII text is stored as-is, not escaped
        assert "動畫" in self.path.read_text(encoding="utf-8")

    def test_load_missing_file_raises_not_found(self):
        with pytest.raises(SnapshotNotFoundError):
            self.store.load()
        assert self.store.exists() is False

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            '{"title": "A"}',
            '[{"title": "A"}]',
            "",
        ],
    )
    def test_load_unparseable_file_raises_corrupt(self, content):
        self.path.parent.mkdir(parents=True)
        self.path.write_text(content, encoding="utf-8")

        with pytest.raises(CorruptSnapshotError):
            self.store.load()

    def test_load_previous_degrades_to_none(self):
        assert self.store.load_previous() is None

        self.path.parent.mkdir(parents=True)
        self.path.write_text("garbage", encoding="utf-8")
        assert self.store.load_previous() is None

    @pytest.mark.parametrize(
        "raw",
        [
            b"\xff\xfe garbage",
            b"[" * 100000 + b"]" * 100000,
        ],
        ids=["invalid-utf8", "deeply-nested"],
    )
    def test_undecodable_file_raises_corrupt(self, raw):
        self.path.parent.mkdir(parents=True)
        self.path.write_bytes(raw)

        with pytest.raises(CorruptSnapshotError):
            self.store.load()
        assert self.store.load_previous() is None

    def test_empty_stored_list_counts_as_no_previous_state(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text("[]", encoding="utf-8")

        assert self.store.load() == []
        assert self.store.load_previous() is None

    def test_load_previous_returns_items(self):
        self.store.save(self.items)

        assert self.store.load_previous() == self.items

    def test_empty_save_is_skipped(self):
        self.store.save(self.items)

        assert self.store.save([]) is False
        assert self.store.load() == self.items

    def test_save_replaces_instead_of_appending(self):
        self.store.save(self.items)
        self.store.save(self.items[:1])

        assert self.store.load() == self.items[:1]

    def test_failed_replace_keeps_old_snapshot_and_cleans_up(self):
        self.store.save(self.items)

        with patch("anime_update_bot.snapshot.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(SnapshotPersistError):
                self.store.save([make_item("D")])

        assert self.store.load() == self.items
        assert os.listdir(self.path.parent) == ["data.json"]
