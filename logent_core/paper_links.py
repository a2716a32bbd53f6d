"""
Paper Links - Turning a raw paper URL into a citation with its abstract

Supported hosts are a closed set (KnownHost). For each of them we know:
- how to go from a PDF link to the landing page (path substitution)
- where the abstract lives in the landing page
- how to clean the site decoration off the page title

Example:
    url = canonicalize_url("https://arxiv.org/pdf/2104.05134.pdf")
    # 'https://arxiv.org/abs/2104.05134'
    info = fetch_paper_info(url)
    format_citation(info.title, url, "markdown")
    # '[Couplings for Multinomial Hamiltonian Monte Carlo](https://arxiv.org/abs/2104.05134)'

Author: Logent contributors | 2026-10-16
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Union
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup

from .dialect import Dialect
from .exceptions import TransportError, UnsupportedDialectError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; logent)"


class KnownHost(str, Enum):
    """Academic hosts Logent can resolve."""
    ARXIV = "arxiv.org"
    OPENREVIEW = "openreview.net"

    @property
    def path_replacement(self) -> str:
        """Replacement for the first 'pdf' in a PDF link."""
        if self is KnownHost.ARXIV:
            return "abs"
        if self is KnownHost.OPENREVIEW:
            return "forum"
        raise AssertionError(f"Unhandled host: {self!r}")


@dataclass
class PaperInfo:
    """Bibliographic data scraped from a landing page."""
    title: str
    abstract: str  # May contain HTML markup


def host_of(url: str) -> str:
    """Hostname of url, '' when it cannot be parsed."""
    try:
        return urlparse(url.strip()).hostname or ""
    except ValueError:
        return ""


def known_host(host: str) -> Optional[KnownHost]:
    try:
        return KnownHost(host)
    except ValueError:
        return None


def is_known_host(host: str) -> bool:
    return known_host(host) is not None


def _default_rules() -> dict:
    return {h.value: h.path_replacement for h in KnownHost}


def canonicalize_url(url: str, rules: Optional[Mapping[str, str]] = None) -> str:
    """
    Map a PDF link to the paper's landing page.

    A trailing '.pdf' is dropped, then for hosts with a rule the first
    occurrence of 'pdf' is replaced once. Landing-page URLs come back
    unchanged.

    Args:
        url: Paper URL
        rules: host -> replacement for 'pdf' (defaults to KnownHost rules)
    """
    rules = _default_rules() if rules is None else rules
    url_without_pdf = url[:-len(".pdf")] if url.endswith(".pdf") else url
    replacement = rules.get(host_of(url))
    if not replacement:
        return url_without_pdf
    return url_without_pdf.replace("pdf", replacement, 1)


# =============================================================================
# Scraping
# =============================================================================

def _title_of(soup: BeautifulSoup) -> str:
    title = soup.find("title")
    return title.get_text() if title else ""


def _abstract_of(host: KnownHost, soup: BeautifulSoup) -> str:
    if host is KnownHost.ARXIV:
        element = soup.select_one(".abstract")
        return element.decode_contents() if element else ""
    if host is KnownHost.OPENREVIEW:
        meta = soup.select_one('meta[name="citation_abstract"]')
        return meta.get("content", "") if meta else ""
    raise AssertionError(f"Unhandled host: {host!r}")


def clean_title(host: Optional[KnownHost], title: str) -> str:
    """Strip site decoration: arXiv's '[id] ' prefix, OpenReview's ' | OpenReview' suffix."""
    if host is KnownHost.ARXIV:
        return re.sub(r"^\[(.*?)\]\s", "", title, count=1)
    if host is KnownHost.OPENREVIEW:
        return re.sub(r"\s(\|\sOpenReview)$", "", title, count=1)
    return title


def parse_paper_info(host: Union[KnownHost, str], html: str) -> PaperInfo:
    """Extract title and abstract from a landing page."""
    host = known_host(host) if not isinstance(host, KnownHost) else host
    soup = BeautifulSoup(html, "html.parser")
    title = clean_title(host, _title_of(soup))
    abstract = _abstract_of(host, soup) if host is not None else ""
    return PaperInfo(title=title, abstract=abstract)


def fetch_paper_info(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: int = 30,
    user_agent: str = DEFAULT_USER_AGENT,
) -> PaperInfo:
    """
    Fetch a landing page and extract its PaperInfo.

    Raises:
        TransportError: the page could not be retrieved
    """
    http = session or requests
    try:
        response = http.get(url, timeout=timeout, headers={"User-Agent": user_agent})
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise TransportError(f"Failed to fetch {url}: {e}", e) from e

    logger.debug(f"Fetched {url} ({len(response.text)} chars)")
    return parse_paper_info(host_of(url), response.text)


# =============================================================================
# Citation rendering
# =============================================================================

def format_citation(title: str, url: str, dialect: Union[Dialect, str, None]) -> str:
    """
    Render an inline link.

    Raises:
        UnsupportedDialectError: dialect is neither markdown nor org
    """
    parsed = Dialect.parse(dialect)
    if parsed is Dialect.MARKDOWN:
        return f"[{title}]({url})"
    if parsed is Dialect.ORG:
        return f"[[{url}][{title}]]"
    if parsed is Dialect.UNRECOGNIZED:
        raise UnsupportedDialectError(dialect)
    raise AssertionError(f"Unhandled dialect: {parsed!r}")
