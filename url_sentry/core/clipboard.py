"""Clipboard monitoring and URL write-back."""

import asyncio
import logging
import sys
from typing import Callable, Optional

import pyperclip

from url_sentry.exceptions import ClipboardAccessError, URLParseError
from url_sentry.sanitizer import Sanitizer, split_http_url

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.5  # seconds

BACKENDS = ("auto", "pasteboard", "pyperclip")


class PasteboardClipboard:
    """macOS general pasteboard, with its native change counter"""

    def __init__(self):
        try:
            import AppKit
        except ImportError as e:
            raise ClipboardAccessError(
                "PyObjC bindings for AppKit not found. "
                "Please install pyobjc-framework-Cocoa", e
            ) from e
        self._string_type = AppKit.NSPasteboardTypeString
        self._pasteboard = AppKit.NSPasteboard.generalPasteboard()

    def change_count(self) -> int:
        try:
            return int(self._pasteboard.changeCount())
        except Exception as e:
            raise ClipboardAccessError("Error reading pasteboard change count", e) from e

    def read_text(self) -> Optional[str]:
        try:
            text = self._pasteboard.stringForType_(self._string_type)
        except Exception as e:
            raise ClipboardAccessError("Error reading pasteboard", e) from e
        return str(text) if text is not None else None

    def write_text(self, text: str) -> None:
        try:
            self._pasteboard.clearContents()
            ok = self._pasteboard.setString_forType_(text, self._string_type)
        except Exception as e:
            raise ClipboardAccessError("Error writing pasteboard", e) from e
        if not ok:
            raise ClipboardAccessError("Pasteboard refused the new string")


class PyperclipClipboard:
    """Portable clipboard through pyperclip.

    pyperclip has no change counter, so one is kept here: it goes up each
    time the pasted text differs from the last text seen, and on every write.
    """

    def __init__(self):
        self._count = 0
        self._last_text = None

    def _paste(self) -> str:
        try:
            return pyperclip.paste()
        except pyperclip.PyperclipException as e:
            raise ClipboardAccessError("Error reading clipboard", e) from e

    def change_count(self) -> int:
        text = self._paste()
        if text != self._last_text:
            self._last_text = text
            self._count += 1
        return self._count

    def read_text(self) -> Optional[str]:
        return self._paste() or None

    def write_text(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise ClipboardAccessError("Error writing clipboard", e) from e
        self._last_text = text
        self._count += 1


def create_clipboard(backend: str = "auto"):
    """Create the clipboard backend by name ("auto", "pasteboard" or "pyperclip")."""
    if backend == "auto":
        backend = "pasteboard" if sys.platform == "darwin" else "pyperclip"
    if backend == "pasteboard":
        return PasteboardClipboard()
    if backend == "pyperclip":
        return PyperclipClipboard()
    raise ValueError(f"Unknown clipboard backend: {backend}")


class ClipboardWatcher:
    """Polls the clipboard and rewrites copied URLs without their trackers"""

    def __init__(self, clipboard, sanitizer: Sanitizer,
                 interval: float = DEFAULT_POLL_INTERVAL,
                 on_clean: Optional[Callable[[str], None]] = None):
        self.clipboard = clipboard
        self.sanitizer = sanitizer
        self.interval = interval
        self.on_clean = on_clean
        self.monitoring = False
        # Whatever is on the clipboard at startup is left alone
        self.last_change_count = self._read_change_count()

    def _read_change_count(self) -> Optional[int]:
        try:
            return self.clipboard.change_count()
        except ClipboardAccessError as e:
            logger.error(f"Error accessing clipboard: {e}")
            return None

    def poll(self) -> Optional[str]:
        """Check the clipboard once; return the cleaned URL if one was written."""
        change_count = self._read_change_count()
        if change_count is None or change_count == self.last_change_count:
            return None
        self.last_change_count = change_count

        try:
            text = self.clipboard.read_text()
        except ClipboardAccessError as e:
            logger.error(f"Error accessing clipboard: {e}")
            return None
        if not text:
            return None

        try:
            split_http_url(text)
        except URLParseError as e:
            logger.debug(f"Skipping clipboard content: {e}")
            return None

        result = self.sanitizer.sanitize(text)
        if not result.changed:
            return None

        try:
            self.clipboard.write_text(result.url)
        except ClipboardAccessError as e:
            logger.error(f"Error updating clipboard: {e}")
            return None

        logger.info(f"Cleaned URL: {result.url}")
        if self.on_clean is not None:
            self.on_clean(result.url)
        return result.url

    async def monitor(self):
        """Poll the clipboard every interval until stop() is called"""
        self.monitoring = True
        while self.monitoring:
            self.poll()
            await asyncio.sleep(self.interval)

    def stop(self):
        """Stop monitoring after the current tick"""
        self.monitoring = False
