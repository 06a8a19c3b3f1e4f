import shutil
import unittest
from pathlib import Path
from uuid import uuid4

from loguru import logger

from secure_chat.logging_config import setup_logging

PROJECT_ROOT = Path(__file__).resolve().parents[1]


class SetupLoggingTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp_dir = PROJECT_ROOT / ".test-artifacts" / f"logging-{uuid4().hex}"

    def tearDown(self) -> None:
        logger.remove()
        shutil.rmtree(self._tmp_dir, ignore_errors=True)

    def test_file_consumer_writes_messages(self) -> None:
        log_path = self._tmp_dir / "chat.log"
        descriptions = setup_logging("DEBUG", [{"type": "file", "path": str(log_path)}])

        logger.info("exchange settled")
        logger.remove()

        self.assertEqual([f"file ({log_path}, DEBUG)"], descriptions)
        self.assertIn("exchange settled", log_path.read_text())

    def test_default_consumer_writes_to_configured_log_file(self) -> None:
        log_path = self._tmp_dir / "default.log"
        descriptions = setup_logging("INFO", log_file=str(log_path))

        logger.debug("not at this level")
        logger.info("session started")
        logger.remove()

        self.assertEqual([f"file ({log_path}, INFO)"], descriptions)
        contents = log_path.read_text()
        self.assertIn("session started", contents)
        self.assertNotIn("not at this level", contents)

    def test_file_consumer_without_path_uses_log_file(self) -> None:
        log_path = self._tmp_dir / "shared.log"
        descriptions = setup_logging("INFO", [{"type": "file", "level": "WARNING"}], log_file=str(log_path))
        self.assertEqual([f"file ({log_path}, WARNING)"], descriptions)

    def test_unknown_consumer_is_skipped(self) -> None:
        descriptions = setup_logging("INFO", [{"type": "syslog"}, {"type": "console", "level": "WARNING"}])
        self.assertEqual(["console (stderr, WARNING)"], descriptions)


if __name__ == "__main__":
    unittest.main()
