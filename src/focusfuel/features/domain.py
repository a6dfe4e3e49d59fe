"""Domain normalization, categorisation, and the exact-match domain lists.

Every list lookup and pattern evaluation goes through
:func:`normalize_domain` first, so ``"https://WWW.Example.com/x"``,
``"example.com"`` and ``"www.example.com"`` all compare equal.

Blacklist / whitelist membership is *exact match only*: ``"m.youtube.com"``
is not covered by a ``"youtube.com"`` entry.  Wildcard URL rules are a
separate concern and are not handled here.
"""

from __future__ import annotations

import logging
from typing import Final, Iterable, Literal
from urllib.parse import urlsplit

from focusfuel.core.types import DomainCategory

logger = logging.getLogger(__name__)

_WWW_PREFIX: Final[str] = "www."


def _strip_www(host: str) -> str:
    while host.startswith(_WWW_PREFIX):
        host = host[len(_WWW_PREFIX):]
    return host


def normalize_domain(url: str) -> str:
    """Extract a lower-cased host from *url* with any ``www.`` prefix removed.

    Scheme-less input (``"facebook.com/groups"``) is parsed as a bare
    host.  If the string cannot be parsed, the raw lower-cased string is
    used instead; this function never raises.

    The result is idempotent: ``normalize_domain(normalize_domain(x)) ==
    normalize_domain(x)``.
    """
    raw = url.strip().lower()
    if not raw:
        return ""
    candidate = raw if "://" in raw else f"//{raw}"
    try:
        host = urlsplit(candidate).hostname
    except ValueError:
        logger.debug("Unparseable URL, using raw string for domain lookup")
        host = None
    if not host:
        return _strip_www(raw)
    return _strip_www(host.rstrip("."))


_CATEGORY_RULES: Final[dict[str, DomainCategory]] = {
    "facebook.com": DomainCategory.social,
    "twitter.com": DomainCategory.social,
    "x.com": DomainCategory.social,
    "instagram.com": DomainCategory.social,
    "tiktok.com": DomainCategory.social,
    "reddit.com": DomainCategory.social,
    "linkedin.com": DomainCategory.social,
    "pinterest.com": DomainCategory.social,
    "snapchat.com": DomainCategory.social,
    "threads.net": DomainCategory.social,
    "bsky.app": DomainCategory.social,
    "mastodon.social": DomainCategory.social,
    "youtube.com": DomainCategory.entertainment,
    "netflix.com": DomainCategory.entertainment,
    "hulu.com": DomainCategory.entertainment,
    "twitch.tv": DomainCategory.entertainment,
    "vimeo.com": DomainCategory.entertainment,
    "disneyplus.com": DomainCategory.entertainment,
    "primevideo.com": DomainCategory.entertainment,
    "spotify.com": DomainCategory.entertainment,
    "9gag.com": DomainCategory.entertainment,
    "news.ycombinator.com": DomainCategory.news,
    "techcrunch.com": DomainCategory.news,
    "arstechnica.com": DomainCategory.news,
    "bbc.com": DomainCategory.news,
    "bbc.co.uk": DomainCategory.news,
    "cnn.com": DomainCategory.news,
    "reuters.com": DomainCategory.news,
    "theverge.com": DomainCategory.news,
    "nytimes.com": DomainCategory.news,
    "theguardian.com": DomainCategory.news,
    "amazon.com": DomainCategory.shopping,
    "ebay.com": DomainCategory.shopping,
    "etsy.com": DomainCategory.shopping,
    "aliexpress.com": DomainCategory.shopping,
    "walmart.com": DomainCategory.shopping,
    "target.com": DomainCategory.shopping,
    "bestbuy.com": DomainCategory.shopping,
}


def categorize_domain(url_or_domain: str) -> DomainCategory:
    """Map a URL or domain to a coarse :class:`DomainCategory`.

    Subdomains inherit their parent's category (``"m.youtube.com"`` ->
    ``entertainment``); anything unrecognised is ``other``.
    """
    domain = normalize_domain(url_or_domain)
    if not domain:
        return DomainCategory.other

    if domain in _CATEGORY_RULES:
        return _CATEGORY_RULES[domain]

    parts = domain.split(".")
    if len(parts) > 2:
        parent = ".".join(parts[-2:])
        if parent in _CATEGORY_RULES:
            return _CATEGORY_RULES[parent]

    return DomainCategory.other


ListHit = Literal["blacklist", "whitelist"]


class DomainLists:
    """Mutable blacklist / whitelist of normalized domains.

    The lists are owned by the settings layer and may be replaced at
    any time; the pipeline reads them on every classification.  When a
    domain sits on both lists the blacklist wins.
    """

    def __init__(
        self,
        blacklist: Iterable[str] = (),
        whitelist: Iterable[str] = (),
    ) -> None:
        self._blacklist: set[str] = set()
        self._whitelist: set[str] = set()
        self.replace(blacklist=blacklist, whitelist=whitelist)

    @staticmethod
    def _normalize_all(domains: Iterable[str]) -> set[str]:
        out = {normalize_domain(d) for d in domains}
        out.discard("")
        return out

    def replace(
        self,
        *,
        blacklist: Iterable[str] | None = None,
        whitelist: Iterable[str] | None = None,
    ) -> None:
        """Swap out one or both lists wholesale."""
        if blacklist is not None:
            self._blacklist = self._normalize_all(blacklist)
        if whitelist is not None:
            self._whitelist = self._normalize_all(whitelist)

    def add_to_blacklist(self, domain: str) -> None:
        self._blacklist.add(normalize_domain(domain))

    def remove_from_blacklist(self, domain: str) -> None:
        self._blacklist.discard(normalize_domain(domain))

    def add_to_whitelist(self, domain: str) -> None:
        self._whitelist.add(normalize_domain(domain))

    def remove_from_whitelist(self, domain: str) -> None:
        self._whitelist.discard(normalize_domain(domain))

    @property
    def blacklist(self) -> list[str]:
        return sorted(self._blacklist)

    @property
    def whitelist(self) -> list[str]:
        return sorted(self._whitelist)

    def lookup(self, domain: str) -> ListHit | None:
        """Return which list *domain* (already normalized) is on, if any."""
        if domain in self._blacklist:
            return "blacklist"
        if domain in self._whitelist:
            return "whitelist"
        return None
