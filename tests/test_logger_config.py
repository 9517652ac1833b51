import os
import sys
import shutil
import tempfile
import unittest

from loguru import logger

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from logger_config import setup_logger


class LoggerConfigTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.mkdtemp()
        self.log_file = os.path.join(self.tmpdir, "logs", "tracker.log")

    def tearDown(self) -> None:
        setup_logger("INFO")
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def _read(self) -> str:
        logger.remove()
        with open(self.log_file, encoding="utf-8") as f:
            return f.read()

    def test_file_sink_respects_level(self) -> None:
        setup_logger("warning", self.log_file)
        logger.info("stored session 1")
        logger.warning("rejected payload")
        text = self._read()
        self.assertIn("WARNING", text)
        self.assertIn("rejected payload", text)
        self.assertNotIn("stored session 1", text)

    def test_debug_level_records_setup(self) -> None:
        setup_logger("DEBUG", self.log_file)
        text = self._read()
        self.assertIn("Logging at DEBUG", text)


if __name__ == "__main__":
    unittest.main()
