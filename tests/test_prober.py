"""
Tests for the website prober.
"""

import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from datetime import datetime
from unittest.mock import Mock, patch

import pytest
import requests

from leadradar.config import ProberConfig
from leadradar.models import WebsiteSignal
from leadradar.prober import (
    MAX_REDIRECTS,
    SKIPPED_SOCIAL_ERROR,
    FetchedPage,
    analyze_html,
    estimate_age,
    extract_copyright_year,
    extract_social_links,
    detect_tech_stack,
    fetch_page,
    probe_website,
    probe_websites_batch,
    _make_soup,
)

CURRENT_YEAR = datetime.now().year


def _response(html: str, status_code: int = 200, url: str = "https://example.com/") -> Mock:
    response = Mock()
    response.status_code = status_code
    response.url = url
    response.headers = {"Content-Type": "text/html; charset=utf-8"}
    response.encoding = "utf-8"
    response.is_redirect = False
    response.iter_content.return_value = [html.encode("utf-8")]
    return response


class TestSocialSkip:
    """Social profiles are never fetched."""

    @patch("leadradar.prober.requests.get")
    def test_facebook_page_is_skipped_without_request(self, mock_get):
        signal = probe_website("https://www.facebook.com/studiobloom")

        mock_get.assert_not_called()
        assert signal.skipped is True
        assert signal.reachable is False
        assert signal.error == SKIPPED_SOCIAL_ERROR

    @patch("leadradar.prober.requests.get")
    def test_bare_instagram_domain_is_skipped(self, mock_get):
        signal = probe_website("instagram.com/studiobloom")

        mock_get.assert_not_called()
        assert signal.skipped is True
        assert signal.url == "instagram.com/studiobloom"


class TestAnalyzeModernSite:
    """Extractors over a current salon site."""

    @pytest.fixture
    def fields(self, sample_html_modern):
        return analyze_html(sample_html_modern, "https://studiobloom.example/", CURRENT_YEAR)

    def test_basic_info(self, fields):
        assert fields["title"] == "Studio Bloom | Hair Salon"
        assert fields["description"] == "Modern hair salon in Berlin."
        assert fields["language"] == "en"
        assert fields["has_mobile_viewport"] is True

    def test_tech_stack(self, fields):
        assert fields["tech_stack"] == ("React", "TailwindCSS")
        assert fields["has_wordpress"] is False
        assert fields["has_custom_site"] is True

    def test_features(self, fields):
        assert fields["has_online_booking"] is True
        assert fields["has_contact_form"] is True
        assert fields["has_live_chat"] is True
        assert fields["has_newsletter"] is True
        assert fields["has_blog"] is True
        assert fields["has_ecommerce"] is False

    def test_social_links_keep_first_per_platform(self, fields):
        assert fields["social_links"] == {
            "facebook": "https://www.facebook.com/studiobloom",
            "instagram": "https://instagram.com/studiobloom",
        }
        assert fields["social_count"] == 2

    def test_design_and_media(self, fields):
        assert fields["has_modern_design"] is True
        assert fields["image_count"] == 2
        assert fields["has_video"] is True

    def test_age_and_https(self, fields):
        assert fields["copyright_year"] == CURRENT_YEAR
        assert fields["estimated_age"] == "new"
        assert fields["is_https"] is True


class TestAnalyzeDatedSite:
    """Extractors over an old WordPress site."""

    @pytest.fixture
    def fields(self, sample_html_dated):
        return analyze_html(sample_html_dated, "http://joesauto.example/", CURRENT_YEAR)

    def test_detects_wordpress_and_jquery(self, fields):
        assert fields["tech_stack"] == ("WordPress", "jQuery")
        assert fields["has_wordpress"] is True
        assert fields["has_custom_site"] is False

    def test_all_rights_reserved_is_not_booking(self, fields):
        assert fields["has_online_booking"] is False

    def test_features_default_to_absent(self, fields):
        assert fields["has_contact_form"] is False
        assert fields["has_live_chat"] is False
        assert fields["has_newsletter"] is False
        assert fields["has_ecommerce"] is False
        assert fields["has_blog"] is False
        assert fields["social_links"] == {}
        assert fields["social_count"] == 0
        assert fields["has_modern_design"] is False

    def test_no_viewport_no_https(self, fields):
        assert fields["has_mobile_viewport"] is False
        assert fields["is_https"] is False
        assert fields["language"] is None

    def test_old_copyright_is_ancient(self, fields):
        assert fields["copyright_year"] == 2012
        assert fields["estimated_age"] == "ancient"

    def test_empty_body(self):
        fields = analyze_html("", "https://example.com", CURRENT_YEAR)
        assert fields["title"] is None
        assert fields["tech_stack"] == ()
        assert fields["estimated_age"] == "unknown"


class TestTechStack:
    """Tests for the technology table."""

    def test_wix_sets_flag(self):
        result = detect_tech_stack('<script src="https://static.wixstatic.com/main.js"></script>')
        assert result["tech_stack"] == ("Wix",)
        assert result["has_wix"] is True
        assert result["has_custom_site"] is False

    def test_shopify_sets_flag(self):
        result = detect_tech_stack('<link href="https://cdn.shopify.com/s/files/theme.css">')
        assert "Shopify" in result["tech_stack"]
        assert result["has_shopify"] is True

    def test_css_padding_is_not_angular(self):
        result = detect_tech_stack('<div style="padding-left: 4px">hi</div>')
        assert "Angular" not in result["tech_stack"]

    def test_plain_page_has_empty_stack(self):
        result = detect_tech_stack("<html><body>Hello</body></html>")
        assert result["tech_stack"] == ()
        assert result["has_custom_site"] is True

    def test_signal_stores_stack_as_tuple(self):
        signal = WebsiteSignal(url="https://example.com", tech_stack=["React"])
        assert signal.tech_stack == ("React",)


class TestSocialLinks:
    """Tests for first-match social link extraction."""

    def test_x_domain_counts_as_twitter(self):
        soup = _make_soup('<a href="https://x.com/studiobloom">X</a>')
        assert extract_social_links(soup)["social_links"] == {"twitter": "https://x.com/studiobloom"}

    def test_lookalike_domain_is_ignored(self):
        soup = _make_soup('<a href="https://www.fedex.com/track">Track</a>')
        assert extract_social_links(soup)["social_count"] == 0

    def test_relative_links_are_ignored(self):
        soup = _make_soup('<a href="/facebook.com">Local</a>')
        assert extract_social_links(soup)["social_count"] == 0


class TestCopyrightYear:
    """Tests for copyright year extraction."""

    def test_symbol(self):
        assert extract_copyright_year("<footer>© 2020 Company</footer>", 2026) == 2020

    def test_word(self):
        assert extract_copyright_year("<footer>Copyright 2019 Company</footer>", 2026) == 2019

    def test_entity(self):
        assert extract_copyright_year("<footer>&copy; 2021 Company</footer>", 2026) == 2021

    def test_year_before_symbol(self):
        assert extract_copyright_year("<footer>2018 © Company</footer>", 2026) == 2018

    def test_range_uses_latest_year(self):
        assert extract_copyright_year("<footer>© 2015-2022 Company</footer>", 2026) == 2022

    def test_ignores_future_years(self):
        assert extract_copyright_year("<footer>&copy; 2099 Company</footer>", 2026) is None

    def test_ignores_years_before_2000(self):
        assert extract_copyright_year("<footer>&copy; 1999 Company</footer>", 2026) is None

    def test_bare_numbers_are_not_years(self):
        assert extract_copyright_year("<p>Call 2020 4455 today</p>", 2026) is None


class TestEstimateAge:
    """Tests for age bucket boundaries."""

    @pytest.mark.parametrize("years_ago,expected", [
        (0, "new"),
        (1, "new"),
        (2, "recent"),
        (3, "recent"),
        (4, "outdated"),
        (6, "outdated"),
        (7, "ancient"),
        (15, "ancient"),
    ])
    def test_buckets(self, years_ago, expected):
        assert estimate_age(2026 - years_ago, 2026) == expected

    def test_no_year_is_unknown(self):
        assert estimate_age(None, 2026) == "unknown"


class TestFetchPage:
    """Tests for the HTTP layer."""

    @patch("leadradar.prober.requests.get")
    def test_reads_body(self, mock_get, prober_config):
        mock_get.return_value = _response("<html>ok</html>")

        page, error = fetch_page("https://example.com", prober_config)

        assert error is None
        assert page.status_code == 200
        assert page.text == "<html>ok</html>"
        kwargs = mock_get.call_args.kwargs
        assert kwargs["stream"] is True
        assert kwargs["headers"]["Accept-Language"] == prober_config.accept_language

    @patch("leadradar.prober.requests.get")
    def test_stops_at_body_limit(self, mock_get):
        response = _response("")
        response.iter_content.return_value = [b"a" * 10, b"b" * 10, b"c" * 10]
        mock_get.return_value = response

        page, _ = fetch_page("https://example.com", ProberConfig(max_body_bytes=15))

        assert page.text == "a" * 10 + "b" * 10

    @patch("leadradar.prober.requests.get")
    def test_non_2xx_skips_body(self, mock_get, prober_config):
        response = _response("", status_code=503)
        mock_get.return_value = response

        page, error = fetch_page("https://example.com", prober_config)

        assert error is None
        assert page.status_code == 503
        response.iter_content.assert_not_called()

    @patch("leadradar.prober.requests.get")
    def test_timeout(self, mock_get, prober_config):
        mock_get.side_effect = requests.exceptions.Timeout("read timed out")
        page, error = fetch_page("https://example.com", prober_config)
        assert page is None
        assert error == "timeout"

    @patch("leadradar.prober.requests.get")
    def test_ssl_error(self, mock_get, prober_config):
        mock_get.side_effect = requests.exceptions.SSLError("CERTIFICATE_VERIFY_FAILED")
        page, error = fetch_page("https://example.com", prober_config)
        assert page is None
        assert error.startswith("ssl_error")

    @patch("leadradar.prober.requests.get")
    def test_redirects_are_followed_by_hand(self, mock_get, prober_config):
        hop = _response("", status_code=301)
        hop.is_redirect = True
        hop.headers = {"Location": "/home"}
        mock_get.side_effect = [hop, _response("<html>home</html>", url="https://example.com/home")]

        page, error = fetch_page("https://example.com", prober_config)

        assert error is None
        assert page.url == "https://example.com/home"
        assert mock_get.call_args_list[1].args[0] == "https://example.com/home"
        for call in mock_get.call_args_list:
            assert call.kwargs["allow_redirects"] is False
            connect, read = call.kwargs["timeout"]
            assert 0 < connect <= prober_config.timeout_seconds
            assert 0 < read <= prober_config.timeout_seconds

    @patch("leadradar.prober.requests.get")
    def test_redirect_loop(self, mock_get, prober_config):
        hop = _response("", status_code=302)
        hop.is_redirect = True
        hop.headers = {"Location": "https://example.com/again"}
        mock_get.return_value = hop

        page, error = fetch_page("https://example.com", prober_config)

        assert page is None
        assert error == "too_many_redirects"
        assert mock_get.call_count == MAX_REDIRECTS + 1


class _SlowSiteHandler(BaseHTTPRequestHandler):
    """Stalls before headers, between body writes, and on every redirect hop."""

    def do_GET(self):
        try:
            if self.path.startswith("/hop"):
                time.sleep(1.5)
                self.send_response(302)
                self.send_header("Location", "/hop")
                self.send_header("Content-Length", "0")
                self.end_headers()
                return
            if self.path.startswith("/quick"):
                body = b"<html><title>Quick</title></html>"
                self.send_response(200)
                self.send_header("Content-Type", "text/html; charset=utf-8")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)
                return
            if self.path.startswith("/moved"):
                self.send_response(302)
                self.send_header("Location", "/quick")
                self.send_header("Content-Length", "0")
                self.end_headers()
                return
            time.sleep(3)
            self.send_response(200)
            self.send_header("Content-Type", "text/html")
            self.send_header("Content-Length", "40000")
            self.end_headers()
            self.wfile.write(b"<html>" + b" " * 19994)
            self.wfile.flush()
            time.sleep(3)
            self.wfile.write(b" " * 20000)
        except (BrokenPipeError, ConnectionResetError):
            pass

    def log_message(self, format, *args):
        pass


@pytest.fixture
def slow_site():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _SlowSiteHandler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()


class TestFetchDeadline:
    """One deadline bounds the whole fetch, not each phase."""

    def test_slow_headers_and_body(self, slow_site):
        start = time.monotonic()
        signal = probe_website(f"{slow_site}/slow", ProberConfig(timeout_seconds=4.0))
        elapsed = time.monotonic() - start

        assert elapsed < 4.5
        assert signal.reachable is False
        assert signal.error == "timeout"

    def test_slow_redirect_chain(self, slow_site):
        start = time.monotonic()
        signal = probe_website(f"{slow_site}/hop", ProberConfig(timeout_seconds=4.0))
        elapsed = time.monotonic() - start

        assert elapsed < 4.5
        assert signal.reachable is False
        assert signal.error == "timeout"

    def test_redirect_to_fast_page(self, slow_site):
        signal = probe_website(f"{slow_site}/moved", ProberConfig(timeout_seconds=4.0))

        assert signal.reachable is True
        assert signal.title == "Quick"


class TestProbeWebsite:
    """Tests for the full probe."""

    @patch("leadradar.prober.requests.get")
    def test_successful_probe(self, mock_get, sample_html_modern, prober_config):
        mock_get.return_value = _response(sample_html_modern, url="https://studiobloom.example/")

        signal = probe_website("studiobloom.example", prober_config)

        assert mock_get.call_args.args[0] == "https://studiobloom.example"
        assert signal.reachable is True
        assert signal.url == "studiobloom.example"
        assert signal.error is None
        assert signal.has_online_booking is True
        assert signal.is_https is True

    @patch("leadradar.prober.fetch_page")
    def test_timeout_gives_default_signal(self, mock_fetch, prober_config):
        mock_fetch.return_value = (None, "timeout")

        signal = probe_website("https://slow.example", prober_config)

        assert signal.reachable is False
        assert signal.error == "timeout"
        assert signal.has_ssl_issues is False
        assert signal.tech_stack == ()
        assert signal.has_online_booking is False
        assert signal.social_count == 0
        assert signal.estimated_age == "unknown"

    @patch("leadradar.prober.fetch_page")
    def test_certificate_failure_sets_ssl_flag(self, mock_fetch, prober_config):
        mock_fetch.return_value = (None, "ssl_error: certificate verify failed")

        signal = probe_website("https://badcert.example", prober_config)

        assert signal.reachable is False
        assert signal.has_ssl_issues is True

    @patch("leadradar.prober.fetch_page")
    def test_bad_status(self, mock_fetch, prober_config):
        mock_fetch.return_value = (FetchedPage(404, "https://gone.example/", ""), None)

        signal = probe_website("https://gone.example", prober_config)

        assert signal.reachable is False
        assert signal.error == "HTTP 404"

    @patch("leadradar.prober.analyze_html")
    @patch("leadradar.prober.fetch_page")
    def test_never_raises(self, mock_fetch, mock_analyze, prober_config):
        mock_fetch.return_value = (FetchedPage(200, "https://weird.example/", "<html>"), None)
        mock_analyze.side_effect = RuntimeError("boom")

        signal = probe_website("https://weird.example", prober_config)

        assert signal.reachable is False
        assert signal.error.startswith("probe_error")


class TestProbeWebsitesBatch:
    """Tests for windowed batch probing."""

    @patch("leadradar.prober.probe_website")
    def test_only_successful_urls_are_returned(self, mock_probe):
        """20 URLs, windows of 3: failures are absent, not present with an empty entry."""
        urls = [f"https://site{i}.example" for i in range(20)]

        def fake_probe(url, config):
            index = int(url.split("site")[1].split(".")[0])
            if index % 2:
                return WebsiteSignal(url=url, error="timeout")
            return WebsiteSignal(url=url, reachable=True)

        mock_probe.side_effect = fake_probe

        results = probe_websites_batch(urls, ProberConfig(concurrency=3))

        assert mock_probe.call_count == 20
        assert sorted(results) == sorted(urls[0::2])
        assert all(signal.reachable for signal in results.values())

    @patch("leadradar.prober.probe_website")
    def test_duplicates_and_socials_are_dropped(self, mock_probe):
        calls = []
        lock = threading.Lock()

        def fake_probe(url, config):
            with lock:
                calls.append(url)
            return WebsiteSignal(url=url, reachable=True)

        mock_probe.side_effect = fake_probe

        results = probe_websites_batch([
            "https://shared.example",
            "https://shared.example",
            "https://facebook.com/somebiz",
            "",
            None,
        ])

        assert calls == ["https://shared.example"]
        assert list(results) == ["https://shared.example"]

    def test_empty_input(self):
        assert probe_websites_batch([]) == {}
