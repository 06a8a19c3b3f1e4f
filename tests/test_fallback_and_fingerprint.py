import base64
import json
import random
import unittest
from unittest.mock import patch

from secure_chat.fallback import FALLBACK_RESPONSES, FallbackReplyGenerator
from secure_chat.fingerprint import build_fingerprint, collect_environment_signals


class FallbackReplyGeneratorTests(unittest.TestCase):
    def test_reply_echoes_user_text(self) -> None:
        generator = FallbackReplyGenerator(random.Random(1))
        reply = generator.generate("Where is my order?")
        self.assertTrue(reply.endswith(" (Mock Response to: Where is my order?)"))
        self.assertIn(reply.split(" (Mock Response to:")[0], FALLBACK_RESPONSES)

    def test_selection_covers_the_catalogue(self) -> None:
        generator = FallbackReplyGenerator(random.Random(3))
        seen = {generator.generate("x").split(" (Mock")[0] for _ in range(200)}
        self.assertEqual(set(FALLBACK_RESPONSES), seen)

    def test_empty_catalogue_rejected(self) -> None:
        with self.assertRaises(ValueError):
            FallbackReplyGenerator(responses=())


class FingerprintTests(unittest.TestCase):
    def test_fingerprint_is_base64_json(self) -> None:
        signals = {"userAgent": "ua", "language": "en-US", "timezone": "UTC"}
        decoded = json.loads(base64.b64decode(build_fingerprint(signals)))
        self.assertEqual(signals, decoded)

    def test_collected_signals(self) -> None:
        signals = collect_environment_signals()
        self.assertEqual({"userAgent", "language", "timezone"}, set(signals))
        self.assertTrue(signals["userAgent"].startswith("secure-chat/"))
        self.assertTrue(signals["timezone"])

    def test_timezone_is_the_zone_name(self) -> None:
        with patch("secure_chat.fingerprint.get_localzone_name", return_value="Europe/Berlin"):
            signals = collect_environment_signals()
        self.assertEqual("Europe/Berlin", signals["timezone"])


if __name__ == "__main__":
    unittest.main()
