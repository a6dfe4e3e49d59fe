"""Root logging setup that keeps browsing details out of log output.

Records pass through :class:`BrowsingPrivacyFilter` before any handler
formats them:

* URLs are cut down to ``scheme://host``.  Paths and query strings
  (search terms, document ids, tokens) never reach the log, while the
  host stays visible because list lookups and classification are keyed
  on it.
* Values of ``title=`` / ``page_title=`` are replaced with a marker.
* Credentials (``api_key=``, ``authorization=``, bare ``sk-...`` keys)
  are replaced with a marker.
"""

from __future__ import annotations

import logging
import re
from typing import Final

_MARKER: Final[str] = "[REDACTED]"

_LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_HIDDEN_VALUE_RE: Final[re.Pattern[str]] = re.compile(
    r"\b(?P<key>page_title|title|api_key|authorization)\s*[=:]\s*"
    r"(?P<value>\"[^\"]*\"|'[^']*'|\S+)",
    re.IGNORECASE,
)

_API_TOKEN_RE: Final[re.Pattern[str]] = re.compile(r"\bsk-[A-Za-z0-9_-]{6,}")

_URL_RE: Final[re.Pattern[str]] = re.compile(
    r"(?P<origin>\b[a-z][a-z0-9+.-]*://[^/\s?#'\"]+)[^\s'\"]*",
    re.IGNORECASE,
)


def scrub(message: str) -> str:
    """Return *message* with titles, credentials and URL paths removed."""
    message = _HIDDEN_VALUE_RE.sub(lambda m: f"{m.group('key')}={_MARKER}", message)
    message = _API_TOKEN_RE.sub(_MARKER, message)
    return _URL_RE.sub(lambda m: m.group("origin"), message)


class BrowsingPrivacyFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = scrub(record.getMessage())
        record.args = None
        return True


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure root logging for CLI entry points.

    Every root handler gets one :class:`BrowsingPrivacyFilter`, so records
    from any ``focusfuel.*`` logger are scrubbed before they are emitted.
    Calling this again does not stack filters.
    """
    logging.basicConfig(level=level, format=_LOG_FORMAT)
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, BrowsingPrivacyFilter) for f in handler.filters):
            handler.addFilter(BrowsingPrivacyFilter())
