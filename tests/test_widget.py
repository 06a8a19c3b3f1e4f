import asyncio
import unittest

import httpx

from secure_chat.bootstrap import build_widget
from secure_chat.models import MessageStatus
from secure_chat.services.session_controller import SendOutcome
from tests.services.base import make_config, mock_client


def _ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"reply": "Hi there"})


class ChatWidgetTests(unittest.TestCase):
    def test_initial_layout_comes_from_config(self) -> None:
        widget = build_widget(
            make_config(initially_open=True, initially_maximized=True, title="Help", disclaimer="Be nice"),
            client=mock_client(_ok),
        )
        self.assertTrue(widget.is_open)
        self.assertTrue(widget.is_maximized)
        self.assertEqual("Help", widget.title)
        self.assertEqual("Be nice", widget.disclaimer)

    def test_toggle_maximize_notifies_host_every_time(self) -> None:
        changes: list[bool] = []
        widget = build_widget(make_config(), client=mock_client(_ok), on_maximize_change=changes.append)
        widget.toggle_maximize()
        widget.toggle_maximize()
        self.assertEqual([True, False], changes)

    def test_failing_maximize_callback_is_ignored(self) -> None:
        def broken(value: bool) -> None:
            raise RuntimeError("host bug")

        widget = build_widget(make_config(), client=mock_client(_ok), on_maximize_change=broken)
        self.assertTrue(widget.toggle_maximize())

    def test_toggle_open(self) -> None:
        widget = build_widget(make_config(), client=mock_client(_ok))
        self.assertFalse(widget.is_open)
        self.assertTrue(widget.toggle_open())
        self.assertFalse(widget.toggle_open())

    def test_typing_then_enter_sends(self) -> None:
        sent: list[str] = []
        widget = build_widget(make_config(), client=mock_client(_ok), on_message_sent=sent.append)
        self.assertTrue(widget.type_text("Hello"))
        self.assertEqual("5/500 characters", widget.character_count())

        outcome = asyncio.run(widget.press_key("Enter"))

        self.assertIs(SendOutcome.REPLIED, outcome)
        self.assertEqual(["Hello"], sent)
        messages = widget.snapshot().messages
        self.assertEqual("Hi there", messages[1].content)
        self.assertIs(MessageStatus.SENT, messages[1].status)
        self.assertEqual("", widget.snapshot().draft)

    def test_typing_beyond_limit_is_refused(self) -> None:
        widget = build_widget(make_config(max_message_length=3), client=mock_client(_ok))
        self.assertFalse(widget.type_text("four"))
        self.assertEqual("", widget.snapshot().draft)

    def test_new_session_resets_messages(self) -> None:
        widget = build_widget(make_config(), client=mock_client(_ok))
        asyncio.run(widget.send("Hello"))
        old_session = widget.snapshot().session_id

        widget.new_session()

        self.assertEqual((), widget.snapshot().messages)
        self.assertNotEqual(old_session, widget.snapshot().session_id)


if __name__ == "__main__":
    unittest.main()
