"""URL Sentry: strips tracking parameters from URLs copied to the clipboard."""

__version__ = "0.1.0"
