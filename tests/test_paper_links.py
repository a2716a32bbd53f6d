"""
Tests for paper link resolution

Author: Logent contributors | 2026-10-16
"""

from unittest.mock import Mock

import pytest
import requests

from logent_core.exceptions import TransportError, UnsupportedDialectError
from logent_core.paper_links import (
    KnownHost,
    canonicalize_url,
    clean_title,
    fetch_paper_info,
    format_citation,
    host_of,
    is_known_host,
    parse_paper_info,
)

ARXIV_HTML = """
<html><head><title>[2104.05134] Couplings for Multinomial Hamiltonian Monte Carlo</title></head>
<body>
<blockquote class="abstract mathjax"><span class="descriptor">Abstract:</span>Hamiltonian Monte Carlo (HMC) is a popular sampling method.</blockquote>
</body></html>
"""

OPENREVIEW_HTML = """
<html><head>
<title>Neural Tangents: Fast and Easy Infinite Neural Networks | OpenReview</title>
<meta name="citation_abstract" content="Neural Tangents is a library for infinite networks."/>
</head><body></body></html>
"""


class TestHosts:
    """Tests for host detection."""

    def test_host_of(self):
        """Test hostname extraction."""
        assert host_of("https://arxiv.org/abs/2104.05134") == "arxiv.org"
        assert host_of("  https://openreview.net/forum?id=x  ") == "openreview.net"
        assert host_of("not a url") == ""

    def test_known_hosts(self):
        """Test only the supported hosts are known."""
        assert is_known_host("arxiv.org")
        assert is_known_host("openreview.net")
        assert not is_known_host("example.com")
        assert not is_known_host("")


class TestCanonicalizeUrl:
    """Tests for PDF link canonicalization."""

    def test_arxiv_pdf(self):
        """Test arXiv PDF links map to the abstract page."""
        assert canonicalize_url("https://arxiv.org/pdf/2104.05134.pdf") == "https://arxiv.org/abs/2104.05134"
        assert canonicalize_url("https://arxiv.org/pdf/2104.05134") == "https://arxiv.org/abs/2104.05134"

    def test_openreview_pdf(self):
        """Test OpenReview PDF links map to the forum page."""
        assert canonicalize_url("https://openreview.net/pdf?id=SJg7spEYDS") == (
            "https://openreview.net/forum?id=SJg7spEYDS"
        )

    def test_landing_pages_unchanged(self):
        """Test canonical URLs are returned as-is."""
        for url in ("https://arxiv.org/abs/2104.05134", "https://openreview.net/forum?id=x"):
            assert canonicalize_url(url) == url

    def test_custom_rules(self):
        """Test caller-supplied replacement rules."""
        rules = {"site-a.example": "abs"}
        assert canonicalize_url("https://site-a.example/pdf/123.pdf", rules) == "https://site-a.example/abs/123"

    def test_unknown_host_only_drops_extension(self):
        """Test hosts without a rule keep their path."""
        assert canonicalize_url("https://example.com/pdf/paper.pdf") == "https://example.com/pdf/paper"

    def test_replacements(self):
        """Test each known host's replacement."""
        assert KnownHost.ARXIV.path_replacement == "abs"
        assert KnownHost.OPENREVIEW.path_replacement == "forum"


class TestParsePaperInfo:
    """Tests for landing page scraping."""

    def test_arxiv(self):
        """Test arXiv title cleanup and abstract markup."""
        info = parse_paper_info("arxiv.org", ARXIV_HTML)

        assert info.title == "Couplings for Multinomial Hamiltonian Monte Carlo"
        assert '<span class="descriptor">Abstract:</span>' in info.abstract
        assert "Hamiltonian Monte Carlo (HMC)" in info.abstract

    def test_openreview(self):
        """Test OpenReview title suffix and meta abstract."""
        info = parse_paper_info(KnownHost.OPENREVIEW, OPENREVIEW_HTML)

        assert info.title == "Neural Tangents: Fast and Easy Infinite Neural Networks"
        assert info.abstract == "Neural Tangents is a library for infinite networks."

    def test_missing_abstract(self):
        """Test pages without an abstract give an empty one."""
        info = parse_paper_info("arxiv.org", "<html><head><title>T</title></head></html>")
        assert info.title == "T"
        assert info.abstract == ""

    def test_clean_title_leaves_other_text(self):
        """Test undecorated titles are kept."""
        assert clean_title(KnownHost.ARXIV, "Plain Title") == "Plain Title"
        assert clean_title(KnownHost.OPENREVIEW, "Plain Title") == "Plain Title"


class TestFetchPaperInfo:
    """Tests for fetching landing pages."""

    def test_fetch(self):
        """Test the page is requested and parsed."""
        session = Mock()
        session.get.return_value = Mock(text=ARXIV_HTML, raise_for_status=Mock())

        info = fetch_paper_info("https://arxiv.org/abs/2104.05134", session=session, timeout=5)

        assert info.title == "Couplings for Multinomial Hamiltonian Monte Carlo"
        args, kwargs = session.get.call_args
        assert args[0] == "https://arxiv.org/abs/2104.05134"
        assert kwargs["timeout"] == 5
        assert "User-Agent" in kwargs["headers"]

    def test_http_error(self):
        """Test HTTP failures become TransportError."""
        session = Mock()
        session.get.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError("404")

        with pytest.raises(TransportError):
            fetch_paper_info("https://arxiv.org/abs/0000.00000", session=session)

    def test_connection_error(self):
        """Test network failures become TransportError."""
        session = Mock()
        session.get.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(TransportError):
            fetch_paper_info("https://arxiv.org/abs/0000.00000", session=session)


class TestFormatCitation:
    """Tests for citation rendering."""

    def test_markdown(self):
        """Test markdown link syntax."""
        assert format_citation("T", "https://x", "markdown") == "[T](https://x)"

    def test_org(self):
        """Test org link syntax."""
        assert format_citation("T", "https://x", "org") == "[[https://x][T]]"

    def test_unknown_dialect(self):
        """Test other formats are refused."""
        with pytest.raises(UnsupportedDialectError) as exc:
            format_citation("T", "https://x", "html")
        assert "Unknown format: html" in str(exc.value)
        assert isinstance(exc.value, ValueError)
