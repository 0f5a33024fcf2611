"""Custom exceptions for URL Sentry."""

import time


class URLSentryError(Exception):
    """Base exception class for URL Sentry."""

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.original_error = original_error
        self.timestamp = time.time()

    def __str__(self):
        base_msg = super().__str__()
        if self.original_error:
            return f"{base_msg} (Caused by: {type(self.original_error).__name__}: {str(self.original_error)})"
        return base_msg


class ConfigurationError(URLSentryError):
    """Error in application configuration."""
    pass


class ConfigLoadError(ConfigurationError):
    """Tracking rules file is missing or malformed."""
    pass


class ClipboardAccessError(URLSentryError):
    """Reading from or writing to the clipboard failed."""
    pass


class URLParseError(URLSentryError):
    """Clipboard text is not an HTTP(S) URL."""
    pass
