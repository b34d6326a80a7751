"""Unit tests for DeliveryEngine."""

from unittest.mock import Mock

from anime_update_bot.delivery import DeliveryEngine
from anime_update_bot.models import Item


def make_item(name: str) -> Item:
    return Item(
        title=name,
        link=f"https://ani.gamer.com.tw/animeVideo.php?sn={name}",
        content=f"message {name}",
        image="",
        time="10/19 23:30",
    )


class FakeNotifier:
    """Records messages and fails on selected ones."""

    def __init__(self, fail_on=(), raise_on=()):
        self.sent = []
        self.attempted = []
        self.fail_on = set(fail_on)
        self.raise_on = set(raise_on)

    def send_message(self, text):
        self.attempted.append(text)
        if text in self.raise_on:
            raise ConnectionError("connection reset")
        if text in self.fail_on:
            return False
        self.sent.append(text)
        return True


class TestDeliveryEngineUnit:
    """Unit tests for DeliveryEngine."""

    def setup_method(self):
        self.a, self.b, self.c, self.d = (make_item(n) for n in "ABCD")

    def test_sends_oldest_first(self):
        notifier = FakeNotifier()
        engine = DeliveryEngine(notifier)

        unsent = engine.deliver([self.c, self.b, self.a])

        assert unsent == []
        assert notifier.sent == ["message A", "message B", "message C"]
        assert engine.sent_count == 3

    def test_empty_updates_send_nothing(self):
        notifier = Mock()
        engine = DeliveryEngine(notifier)

        assert engine.deliver([]) == []
        notifier.send_message.assert_not_called()

    def test_failure_stops_and_returns_unattempted_tail_newest_first(self):
        notifier = FakeNotifier(fail_on={"message B"})
        engine = DeliveryEngine(notifier)

        unsent = engine.deliver([self.d, self.c, self.b, self.a])

        assert notifier.sent == ["message A"]
        assert notifier.attempted == ["message A", "message B"]
        assert unsent == [self.d, self.c, self.b]
        assert engine.sent_count == 1

    def test_failure_on_last_item_returns_only_that_item(self):
        notifier = FakeNotifier(fail_on={"message D"})
        engine = DeliveryEngine(notifier)

        unsent = engine.deliver([self.d, self.c])

        assert notifier.sent == ["message C"]
        assert unsent == [self.d]

    def test_notifier_exception_is_treated_as_send_failure(self):
        notifier = FakeNotifier(raise_on={"message A"})
        engine = DeliveryEngine(notifier)

        unsent = engine.deliver([self.b, self.a])

        assert notifier.sent == []
        assert unsent == [self.b, self.a]

    def test_sent_count_resets_between_runs(self):
        engine = DeliveryEngine(FakeNotifier())
        engine.deliver([self.b, self.a])
        engine.deliver([self.c])

        assert engine.sent_count == 1
