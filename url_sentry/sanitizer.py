"""Query-string cleaning for HTTP(S) URLs."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple
from urllib.parse import SplitResult, unquote, urlsplit

from url_sentry.exceptions import URLParseError
from url_sentry.rules import RuleStore

logger = logging.getLogger(__name__)

HTTP_SCHEME_PREFIX = "http"


@dataclass(frozen=True)
class SanitizeResult:
    """Either unchanged (url is None) or the cleaned URL string."""
    url: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.url is not None

    @classmethod
    def cleaned(cls, url: str) -> "SanitizeResult":
        return cls(url)


UNCHANGED = SanitizeResult()


def split_http_url(text: str) -> SplitResult:
    """Parse clipboard text as an HTTP-family URL.

    Raises:
        URLParseError: if the text has whitespace or control characters,
            does not parse, or its scheme does not start with "http"
    """
    if not isinstance(text, str) or not text:
        raise URLParseError("empty or not a string")
    if any(ch.isspace() or ord(ch) < 32 or ord(ch) == 127 for ch in text):
        raise URLParseError("contains whitespace or control characters")
    try:
        parts = urlsplit(text)
    except ValueError as e:
        raise URLParseError("unparseable URL", e) from e
    if not parts.scheme.startswith(HTTP_SCHEME_PREFIX):
        raise URLParseError(f"unsupported scheme '{parts.scheme}'")
    return parts


def is_http_url(text: str) -> bool:
    """Check if text is a URL with an HTTP-family scheme"""
    try:
        split_http_url(text)
    except URLParseError:
        return False
    return True


def _split_query(url: str) -> Tuple[str, Optional[str], str]:
    """Split a URL into (before '?', raw query or None, '#fragment' or '')."""
    head, hash_mark, fragment = url.partition("#")
    base, question_mark, query = head.partition("?")
    return base, (query if question_mark else None), hash_mark + fragment


def _item_name(item: str) -> str:
    return unquote(item.partition("=")[0]).lower()


class Sanitizer:
    """Drops tracking query parameters according to a RuleStore."""

    def __init__(self, rule_store: RuleStore):
        self.rule_store = rule_store

    def sanitize(self, url: str) -> SanitizeResult:
        """Return the URL without its tracking parameters, or UNCHANGED.

        Kept query items are copied through byte-for-byte, in order. A domain
        rule, when one matches the host, replaces the generic parameter list
        entirely. Cleaning an already clean URL is always UNCHANGED.
        """
        base, query, fragment = _split_query(url)
        if not query:
            return UNCHANGED

        items = query.split("&")

        try:
            host = urlsplit(url).hostname
        except ValueError as e:
            logger.debug(f"Could not read host from {url!r}: {e}")
            return UNCHANGED

        kept = self.filter_items(items, host)
        if len(kept) == len(items):
            return UNCHANGED

        if kept:
            return SanitizeResult.cleaned(f"{base}?{'&'.join(kept)}{fragment}")
        return SanitizeResult.cleaned(f"{base}{fragment}")

    def filter_items(self, items: List[str], host: Optional[str]) -> List[str]:
        """Return the raw query items that survive the rules for host."""
        rule = self.rule_store.domain_rule(host)
        if rule is not None:
            return [item for item in items if rule.keeps(_item_name(item))]

        generic = self.rule_store.generic_params
        return [item for item in items if _item_name(item) not in generic]
