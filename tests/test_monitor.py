"""Tests for the command line entry point."""

import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr
from unittest.mock import MagicMock, patch

from url_sentry import monitor
from url_sentry.core.clipboard import ClipboardWatcher, PyperclipClipboard
from url_sentry.exceptions import ClipboardAccessError
from url_sentry.rules import DEFAULT_RULES_PATH
from url_sentry.sanitizer import Sanitizer

from tests.test_base import AsyncTestCase
from tests.test_utils import SAMPLE_RULES, FakeClipboard, make_rule_store, write_rules_file


class TestArgumentParsing(unittest.TestCase):
    """Test command line argument parsing"""

    def test_default_arguments(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop(monitor.CONFIG_ENV_VAR, None)
            args = monitor.parse_arguments([])
        self.assertEqual(args.config, str(DEFAULT_RULES_PATH))
        self.assertEqual(args.interval, 0.5)
        self.assertEqual(args.backend, "auto")
        self.assertFalse(args.debug)
        self.assertIsNone(args.log_file)

    def test_config_from_environment(self):
        with patch.dict(os.environ, {monitor.CONFIG_ENV_VAR: "/etc/url-sentry.json"}):
            args = monitor.parse_arguments([])
        self.assertEqual(args.config, "/etc/url-sentry.json")

    def test_custom_arguments(self):
        args = monitor.parse_arguments([
            "--config", "rules.json", "--interval", "1.5",
            "--backend", "pyperclip", "--debug", "--log-file", "sentry.log",
        ])
        self.assertEqual(args.config, "rules.json")
        self.assertEqual(args.interval, 1.5)
        self.assertEqual(args.backend, "pyperclip")
        self.assertTrue(args.debug)
        self.assertEqual(args.log_file, "sentry.log")

    def test_invalid_arguments(self):
        for argv in (["--interval", "0"], ["--interval", "-1"], ["--interval", "soon"],
                     ["--backend", "xclip"]):
            with self.subTest(argv=argv):
                with redirect_stderr(io.StringIO()), self.assertRaises(SystemExit):
                    monitor.parse_arguments(argv)


class TestMain(unittest.TestCase):
    """Test wiring and process lifecycle"""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        patcher = patch.object(monitor, "setup_logging")
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_build_watcher(self):
        path = write_rules_file(self.tmpdir.name, SAMPLE_RULES)
        args = monitor.parse_arguments(["--config", path, "--backend", "pyperclip", "--interval", "2"])
        with patch("pyperclip.paste", return_value=""):
            watcher = monitor.build_watcher(args)
        self.assertIsInstance(watcher.clipboard, PyperclipClipboard)
        self.assertEqual(watcher.interval, 2.0)
        self.assertIs(watcher.on_clean, monitor.report_cleaned)
        self.assertIn("utm_medium", watcher.sanitizer.rule_store.generic_params)

    def test_report_cleaned_prints_url(self):
        with patch("builtins.print") as mock_print:
            monitor.report_cleaned("https://x.com/")
        self.assertIn("Cleaned URL: https://x.com/", mock_print.call_args[0][0])

    def test_keyboard_interrupt_exits_cleanly(self):
        def interrupted(coro):
            coro.close()
            raise KeyboardInterrupt

        with patch.object(monitor, "build_watcher", return_value=MagicMock()), \
                patch("asyncio.run", side_effect=interrupted), \
                patch("builtins.print") as mock_print:
            monitor.main([])

        printed = " ".join(str(call.args[0]) for call in mock_print.call_args_list)
        self.assertIn(monitor.BANNER, printed)
        self.assertIn("Exiting", printed)

    def test_clipboard_unavailable_exits_with_error(self):
        with patch.object(monitor, "build_watcher",
                          side_effect=ClipboardAccessError("no pasteboard")), \
                self.assertLogs("url_sentry.monitor", level="ERROR"), \
                self.assertRaises(SystemExit) as ctx:
            monitor.main([])
        self.assertEqual(ctx.exception.code, 1)


class TestRun(AsyncTestCase):
    """Test the run coroutine"""

    def test_run_returns_once_watcher_stops(self):
        clipboard = FakeClipboard()
        watcher = ClipboardWatcher(clipboard, Sanitizer(make_rule_store()), interval=0.01)
        watcher.on_clean = lambda url: watcher.stop()

        async def scenario():
            task = self.loop.create_task(monitor.run(watcher))
            await self.wait_for_condition(lambda: watcher.monitoring)
            clipboard.copy("https://x.com/?utm_source=a&b=1")
            await task

        self.run_async_test(scenario())
        self.assertEqual(clipboard.text, "https://x.com/?b=1")
        self.assertFalse(watcher.monitoring)


if __name__ == "__main__":
    unittest.main()
