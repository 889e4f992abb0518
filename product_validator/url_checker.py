"""Outbound URL liveness checks.

A URL is checked with a single GET (redirects followed, no retry). Any final
status >= 400 is a failure. URLs matching the ignore table are never fetched;
failures on URLs matching the suppress table are logged as warnings and do
not count as errors.
"""

from __future__ import annotations

import re

import httpx

from .log import TOPIC, log
from .sink import URL, URL_SUPPRESSED, ErrorSink
from .url_policies import UrlPolicies, load_policies

# Some sites reject default client user-agents.
USER_AGENT = "Mozilla/5.0 (Windows NT 6.1; Win64; x64; rv:47.0) Gecko/20100101 Firefox/47.0"
URL_CHECK_CONNECT_TIMEOUT = 3
URL_CHECK_READ_TIMEOUT = 10

# [text](url) or [text](url "title")
MARKDOWN_LINK_RE = re.compile(r"\]\((http[^)\"]+)")
# <url>
AUTOLINK_RE = re.compile(r"<(http[^>]+)")
# [id]: url or [id]: url "title"
REFERENCE_LINK_RE = re.compile(r": (http[^\"\n]+)")

URL_PATTERNS = (MARKDOWN_LINK_RE, AUTOLINK_RE, REFERENCE_LINK_RE)


class UrlCheckError(Exception):
    pass


def extract_urls(text: str) -> list[str]:
    """Find every URL in markdown text.

    Each pattern runs independently, so a URL matched by two patterns is
    returned twice. Trailing spaces (``[t](url "title")``) are stripped.
    """
    urls = []
    for pattern in URL_PATTERNS:
        urls.extend(m.strip() for m in pattern.findall(text or ""))
    return urls


class UrlChecker:
    def __init__(
        self,
        policies: UrlPolicies | None = None,
        connect_timeout: float = URL_CHECK_CONNECT_TIMEOUT,
        read_timeout: float = URL_CHECK_READ_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        self.policies = policies if policies is not None else load_policies()
        self.client = httpx.Client(
            follow_redirects=True,
            timeout=httpx.Timeout(read_timeout, connect=connect_timeout),
            headers={"User-Agent": USER_AGENT},
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "UrlChecker":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def check(self, url: str) -> str | None:
        """Fetch ``url`` and raise if it does not resolve.

        Returns the ignore reason when the URL is on the ignore list (no
        request is made), ``None`` otherwise.
        """
        url = url.strip()
        ignored = self.policies.ignored.match(url)
        if ignored:
            log(f"{TOPIC} Ignore URL {url} : {ignored}.", "WARN")
            return ignored

        log(f"{TOPIC} Checking URL {url}.", "DEBUG")
        with self.client.stream("GET", url) as response:
            if response.status_code >= 400:
                raise UrlCheckError(f"response code is {response.status_code} {response.reason_phrase}".strip())
        return None

    def verify(self, sink: ErrorSink, location: str, field: str, url: str) -> bool:
        """Check ``url`` and record any failure in ``sink``.

        Returns True when the URL resolved or was ignored.
        """
        url = url.strip()
        try:
            self.check(url)
            return True
        except Exception as e:
            # httpx and idna raise plain ValueError/UnicodeError on some malformed URLs.
            details = f"got an error : '{str(e) or type(e).__name__}'"
            suppressed = self.policies.suppressed.match(url)
            if suppressed:
                sink.warn(location, field, url, f"{details} (suppressed: {suppressed})", URL_SUPPRESSED)
            else:
                sink.report(location, field, url, details, URL)
            return False

    def verify_text(self, sink: ErrorSink, location: str, markdown: str) -> int:
        """Check every URL embedded in ``markdown``; return how many failed."""
        failed = 0
        for url in extract_urls(markdown):
            if not self.verify(sink, location, "content", url):
                failed += 1
        return failed
