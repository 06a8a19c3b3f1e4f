import unittest
from datetime import UTC, datetime

from secure_chat.models import ConnectionStatus, Message, MessageOrigin, MessageStatus
from secure_chat.session_store import SessionStore

_T0 = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)


class SessionStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = SessionStore("session-1")
        self.snapshots = []
        self.store.subscribe(self.snapshots.append)

    def _begin(self) -> None:
        self.store.begin_exchange(
            Message.from_user("u1", "Hello", _T0),
            Message.bot_placeholder("b1", _T0),
        )

    def test_initial_state(self) -> None:
        snapshot = self.store.snapshot()
        self.assertEqual("session-1", snapshot.session_id)
        self.assertEqual((), snapshot.messages)
        self.assertIs(ConnectionStatus.DISCONNECTED, snapshot.connection_status)
        self.assertFalse(snapshot.busy)

    def test_begin_exchange_publishes_once(self) -> None:
        self.store.set_draft("Hello")
        self.snapshots.clear()

        self._begin()

        self.assertEqual(1, len(self.snapshots))
        snapshot = self.snapshots[0]
        self.assertEqual(["u1", "b1"], [m.id for m in snapshot.messages])
        self.assertTrue(snapshot.busy)
        self.assertEqual("", snapshot.draft)
        self.assertIs(ConnectionStatus.CONNECTED, snapshot.connection_status)

    def test_settle_updates_in_place(self) -> None:
        self._begin()

        found = self.store.settle_placeholder("b1", "Hi", MessageStatus.SENT, origin=MessageOrigin.LIVE)

        self.assertTrue(found)
        bot = self.store.messages[1]
        self.assertEqual(("b1", "Hi", MessageStatus.SENT, MessageOrigin.LIVE), (bot.id, bot.content, bot.status, bot.origin))
        self.assertFalse(self.store.busy)

    def test_settle_twice_is_rejected(self) -> None:
        self._begin()
        self.store.settle_placeholder("b1", "Hi", MessageStatus.SENT)
        with self.assertRaises(ValueError):
            self.store.settle_placeholder("b1", "again", MessageStatus.ERROR)

    def test_settle_missing_message_still_clears_busy(self) -> None:
        self._begin()
        self.assertFalse(self.store.settle_placeholder("gone", "Hi", MessageStatus.SENT))
        self.assertFalse(self.store.busy)

    def test_snapshots_are_isolated_from_later_changes(self) -> None:
        self._begin()
        before = self.store.snapshot()
        self.store.settle_placeholder("b1", "Hi", MessageStatus.SENT)
        self.assertIs(MessageStatus.SENDING, before.messages[1].status)

    def test_reset(self) -> None:
        self._begin()
        self.store.reset("session-2")
        self.assertEqual("session-2", self.store.session_id)
        self.assertEqual((), self.store.messages)
        self.assertFalse(self.store.busy)

    def test_failing_listener_does_not_block_others(self) -> None:
        def broken(snapshot) -> None:
            raise RuntimeError("render failed")

        self.store.subscribe(broken)
        received = []
        self.store.subscribe(received.append)
        self.store.set_connection_status(ConnectionStatus.ERROR)
        self.assertEqual(1, len(received))

    def test_unsubscribe(self) -> None:
        received = []
        unsubscribe = self.store.subscribe(received.append)
        unsubscribe()
        self.store.set_draft("x")
        self.assertEqual([], received)


class MessageTests(unittest.TestCase):
    def test_user_messages_start_sent(self) -> None:
        message = Message.from_user("u1", "Hello", _T0)
        self.assertIs(MessageStatus.SENT, message.status)
        self.assertIsNone(message.origin)

    def test_placeholder_cannot_settle_to_sending(self) -> None:
        with self.assertRaises(ValueError):
            Message.bot_placeholder("b1", _T0).settle("x", MessageStatus.SENDING)

    def test_settle_keeps_identity_fields(self) -> None:
        placeholder = Message.bot_placeholder("b1", _T0)
        settled = placeholder.settle("Hi", MessageStatus.SENT, MessageOrigin.FALLBACK)
        self.assertEqual((placeholder.id, placeholder.sender, placeholder.created_at), (settled.id, settled.sender, settled.created_at))


if __name__ == "__main__":
    unittest.main()
