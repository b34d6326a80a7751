"""Unit tests for fingerprinting, update detection and the Item model."""

import pytest

from anime_update_bot.dedup import UpdateDetector, fingerprint
from anime_update_bot.models import Item


def make_item(name: str, episode: int = 1) -> Item:
    link = f"https://ani.gamer.com.tw/animeVideo.php?sn={name}{episode}"
    return Item(
        title=name,
        link=link,
        content=f"【更新通知】{name} [{episode}]\n{link}",
        image=f"https://p2.bahamut.com.tw/B/ACG/c/{name}.JPG",
        time="10/19 23:30",
    )


class TestUpdateDetectorUnit:
    """Scenario tests for UpdateDetector."""

    def setup_method(self):
        self.detector = UpdateDetector()
        self.a, self.b, self.c, self.d = (make_item(n) for n in "ABCD")

    def test_single_new_item_on_top(self):
        updates = self.detector.detect([self.c, self.b, self.a], [self.b, self.a])

        assert updates == [self.c]

    def test_two_new_items_keep_newest_first_order(self):
        updates = self.detector.detect(
            [self.d, self.c, self.b, self.a], [self.b, self.a]
        )

        assert updates == [self.d, self.c]

    def test_first_run_returns_everything(self):
        updates = self.detector.detect([self.c, self.b, self.a], None)

        assert updates == [self.c, self.b, self.a]

    def test_items_after_a_seen_item_are_ignored(self):
        """A stale entry ends the walk even if unseen items follow it."""
        updates = self.detector.detect([self.c, self.a, self.d], [self.a])

        assert updates == [self.c]

    def test_empty_previous_list_is_not_first_run_but_everything_is_new(self):
        assert self.detector.detect([self.b, self.a], []) == [self.b, self.a]

    def test_formatting_change_counts_as_new(self):
        reformatted = Item(**{**self.a.to_dict(), "title": self.a.title + " "})

        assert self.detector.detect([reformatted], [self.a]) == [reformatted]


class TestItemUnit:
    """Unit tests for the Item model."""

    def test_to_dict_uses_canonical_field_order(self):
        item = make_item("A")

        assert list(item.to_dict()) == ["title", "link", "content", "image", "time"]

    def test_from_dict_round_trip(self):
        item = make_item("A", episode=12)

        assert Item.from_dict(item.to_dict()) == item

    def test_from_dict_ignores_unknown_keys(self):
        data = {**make_item("A").to_dict(), "episode": "12"}

        assert Item.from_dict(data) == make_item("A")

    @pytest.mark.parametrize(
        "data",
        [
            {"title": "A", "link": "l", "content": "c", "image": "i"},
            {"title": "A", "link": "l", "content": "c", "image": "i", "time": 5},
            ["A", "l", "c", "i", "t"],
        ],
    )
    def test_from_dict_rejects_malformed_records(self, data):
        with pytest.raises(ValueError):
            Item.from_dict(data)

    def test_items_are_immutable(self):
        item = make_item("A")

        with pytest.raises(AttributeError):
            item.title = "B"

    def test_fingerprint_is_stable_across_instances(self):
        assert fingerprint(make_item("A")) == fingerprint(make_item("A"))
        assert fingerprint(make_item("A")) != fingerprint(make_item("A", episode=2))
