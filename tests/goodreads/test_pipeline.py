"""Tests for the request pipeline."""

from unittest.mock import Mock, patch

import pytest
import requests

from goodreads.cache import CacheStore, make_cache_key
from goodreads.errors import ConfigurationError, ProtocolError, RateLimitError, TransportError
from goodreads.normalizers import ResponseFormat
from goodreads.pipeline import RequestPipeline, RequestSpec, build_query
from goodreads.rate_limiter import RateLimiter

BOOK_XML = (
    b'<?xml version="1.0" encoding="UTF-8"?>\n'
    b"<GoodreadsResponse><book><id>1</id><title>Dune</title></book></GoodreadsResponse>"
)


def make_response(body: bytes, status_code: int = 200) -> Mock:
    """Build a mock requests.Response."""
    response = Mock()
    response.status_code = status_code
    response.content = body
    response.text = body.decode("utf-8", errors="replace")
    return response


class TestBuildQuery:
    """Tests for query string construction."""

    def test_insertion_order_kept(self):
        """Test that parameters appear in the order given."""
        assert build_query({"v": 2, "format": "xml", "key": "k"}) == "v=2&format=xml&key=k"

    def test_empty_string_sent(self):
        """Test that empty-string values are sent literally."""
        assert build_query({"title": "Dune Messiah", "author": ""}) == "title=Dune+Messiah&author="

    def test_none_omitted(self):
        """Test that None values are left out."""
        assert build_query({"key": "k", "shelf": None}) == "key=k"

    def test_booleans_as_integers(self):
        """Test that booleans are sent as 1/0."""
        assert build_query({"a": True, "b": False}) == "a=1&b=0"


class TestRequestSpec:
    """Tests for RequestSpec."""

    def test_defaults_to_xml(self):
        """Test that XML is used unless JSON is requested."""
        spec = RequestSpec.from_parameters("book/show", {"key": "k", "id": 1})
        assert spec.response_format is ResponseFormat.XML

    def test_format_xml_parameter(self):
        """Test that format=xml stays XML."""
        spec = RequestSpec.from_parameters("review/list", {"format": "xml"})
        assert spec.response_format is ResponseFormat.XML

    def test_format_json_parameter(self):
        """Test that format=json selects JSON."""
        spec = RequestSpec.from_parameters("book/show", {"format": "json"})
        assert spec.response_format is ResponseFormat.JSON

    def test_url(self):
        """Test URL construction."""
        spec = RequestSpec.from_parameters("book/show", {"key": "k", "id": 1})
        assert spec.url("https://www.goodreads.com") == "https://www.goodreads.com/book/show?key=k&id=1"

    def test_url_without_parameters(self):
        """Test that the '?' is kept even with no parameters."""
        assert RequestSpec.from_parameters("book/show").url("https://x.test/") == "https://x.test/book/show?"

    def test_cache_key(self):
        """Test that the spec's key matches make_cache_key."""
        spec = RequestSpec.from_parameters("book/show", {"key": "k", "id": 1})
        assert spec.cache_key == make_cache_key("book/show", {"id": 1, "key": "k"})


class TestRequestPipeline:
    """Tests for RequestPipeline."""

    @pytest.fixture
    def cache(self, tmp_path):
        return CacheStore(tmp_path)

    @pytest.fixture
    def pipeline(self, cache):
        """Create a pipeline without throttling delay."""
        return RequestPipeline(cache, rate_limiter=RateLimiter(min_interval=0))

    @patch("requests.Session.get")
    def test_cache_miss_fetches_and_caches(self, mock_get, pipeline, cache):
        """Test the full miss path: fetch, normalize, write back."""
        mock_get.return_value = make_response(BOOK_XML)

        result = pipeline.execute("book/show", {"key": "k", "id": 1})

        assert result == {"book": {"id": "1", "title": "Dune"}}
        assert cache.get(make_cache_key("book/show", {"key": "k", "id": 1})) == result
        mock_get.assert_called_once_with(
            "https://www.goodreads.com/book/show?key=k&id=1",
            headers={"Accept": "application/xml"},
            timeout=10,
        )

    @patch("requests.Session.get")
    def test_cache_hit_skips_http(self, mock_get, pipeline, cache):
        """Test that a warm cache returns without a request."""
        cache.put(make_cache_key("book/show", {"key": "k", "id": 1}), {"book": {"title": "Cached"}})

        result = pipeline.execute("book/show", {"id": 1, "key": "k"})

        assert result == {"book": {"title": "Cached"}}
        mock_get.assert_not_called()

    @patch("requests.Session.get")
    def test_repeated_call_fetches_once(self, mock_get, pipeline):
        """Test idempotence within the TTL window."""
        mock_get.return_value = make_response(BOOK_XML)

        first = pipeline.execute("book/show", {"key": "k", "id": 1})
        second = pipeline.execute("book/show", {"key": "k", "id": 1})

        assert first == second
        assert mock_get.call_count == 1

    @patch("requests.Session.get")
    def test_json_accept_header(self, mock_get, pipeline):
        """Test that format=json requests and parses JSON."""
        mock_get.return_value = make_response(b'{"book": {"title": "Dune"}}')

        result = pipeline.execute("book/show", {"format": "json", "id": 1})

        assert result == {"book": {"title": "Dune"}}
        assert mock_get.call_args.kwargs["headers"] == {"Accept": "application/json"}

    @patch("requests.Session.get")
    def test_malformed_body_raises_protocol_error(self, mock_get, pipeline, cache, tmp_path):
        """Test that an unparseable body reports URL and body and is not cached."""
        mock_get.return_value = make_response(b"<html>Down for maintenance")

        with pytest.raises(ProtocolError) as exc_info:
            pipeline.execute("book/show", {"key": "k", "id": 1})

        error = exc_info.value
        assert error.url == "https://www.goodreads.com/book/show?key=k&id=1"
        assert error.body == "<html>Down for maintenance"
        assert 'Server error on "https://www.goodreads.com/book/show?key=k&id=1"' in str(error)
        assert isinstance(error.__cause__, ProtocolError)
        assert list(tmp_path.iterdir()) == []

    @patch("requests.Session.get")
    def test_null_json_raises_protocol_error(self, mock_get, pipeline):
        """Test that a null document is a protocol error."""
        mock_get.return_value = make_response(b"null")

        with pytest.raises(ProtocolError):
            pipeline.execute("book/show", {"format": "json"})

    @patch("requests.Session.get")
    def test_connection_error_raises_transport_error(self, mock_get, pipeline):
        """Test that network failures become TransportError."""
        mock_get.side_effect = requests.exceptions.ConnectionError("DNS failure")

        with pytest.raises(TransportError, match="book/show") as exc_info:
            pipeline.execute("book/show", {"key": "k", "id": 1})

        assert exc_info.value.endpoint == "book/show"
        assert exc_info.value.status_code is None

    @patch("requests.Session.get")
    def test_timeout_raises_transport_error(self, mock_get, pipeline):
        """Test that timeouts become TransportError."""
        mock_get.side_effect = requests.exceptions.Timeout()

        with pytest.raises(TransportError, match="timed out"):
            pipeline.execute("book/show", {"key": "k", "id": 1})

    @patch("requests.Session.get")
    def test_no_retry(self, mock_get, pipeline):
        """Test that a failed request is attempted exactly once."""
        mock_get.side_effect = requests.exceptions.ConnectionError()

        with pytest.raises(TransportError):
            pipeline.execute("book/show", {"key": "k", "id": 1})

        assert mock_get.call_count == 1

    @patch("requests.Session.get")
    def test_http_error_status(self, mock_get, pipeline):
        """Test that HTTP error statuses become TransportError."""
        mock_get.return_value = make_response(b"<error>not found</error>", status_code=404)

        with pytest.raises(TransportError) as exc_info:
            pipeline.execute("book/show", {"key": "k", "id": 1})

        assert exc_info.value.status_code == 404

    @patch("requests.Session.get")
    def test_http_429_raises_rate_limit_error(self, mock_get, pipeline):
        """Test that HTTP 429 becomes RateLimitError."""
        mock_get.return_value = make_response(b"", status_code=429)

        with pytest.raises(RateLimitError):
            pipeline.execute("book/show", {"key": "k", "id": 1})

    @patch("requests.Session.get")
    def test_rate_limiter_used_around_fetch(self, mock_get, cache):
        """Test that the limiter waits before and records after each fetch."""
        limiter = Mock(spec=RateLimiter)
        pipeline = RequestPipeline(cache, rate_limiter=limiter)
        mock_get.return_value = make_response(BOOK_XML)

        pipeline.execute("book/show", {"key": "k", "id": 1})

        limiter.wait_if_needed.assert_called_once()
        limiter.record_request.assert_called_once()

    @patch("requests.Session.get")
    def test_rate_limiter_recorded_on_failure(self, mock_get, cache):
        """Test that a failed fetch still counts as a request."""
        limiter = Mock(spec=RateLimiter)
        pipeline = RequestPipeline(cache, rate_limiter=limiter)
        mock_get.side_effect = requests.exceptions.ConnectionError()

        with pytest.raises(TransportError):
            pipeline.execute("book/show", {"key": "k", "id": 1})

        limiter.record_request.assert_called_once()

    @patch("requests.Session.get")
    def test_cache_hit_does_not_throttle(self, mock_get, cache):
        """Test that cached responses bypass the limiter."""
        limiter = Mock(spec=RateLimiter)
        pipeline = RequestPipeline(cache, rate_limiter=limiter)
        cache.put(make_cache_key("book/show", {"id": 1}), {"book": {}})

        pipeline.execute("book/show", {"id": 1})

        limiter.wait_if_needed.assert_not_called()

    @patch("requests.Session.get")
    def test_custom_ttl_and_root(self, mock_get, cache):
        """Test that api_root and cache_ttl are honoured."""
        pipeline = RequestPipeline(
            cache,
            rate_limiter=RateLimiter(min_interval=0),
            api_root="https://api.example.test/",
            cache_ttl=5,
        )
        mock_get.return_value = make_response(BOOK_XML)

        with patch("goodreads.cache.time.time", return_value=1000.0):
            pipeline.execute("book/show", {"id": 1})

        assert mock_get.call_args.args[0] == "https://api.example.test/book/show?id=1"
        with patch("goodreads.cache.time.time", return_value=1005.0):
            assert cache.get(make_cache_key("book/show", {"id": 1})) is None

    def test_unusable_cache_raises_before_fetch(self, tmp_path):
        """Test that cache errors abort the request."""
        pipeline = RequestPipeline(CacheStore(tmp_path / "missing"))

        with patch("requests.Session.get") as mock_get:
            with pytest.raises(ConfigurationError):
                pipeline.execute("book/show", {"id": 1})

        mock_get.assert_not_called()

    def test_sets_user_agent(self, cache):
        """Test that requests identify the client."""
        pipeline = RequestPipeline(cache)
        assert pipeline.session.headers["User-Agent"].startswith("goodreads-client/")

    def test_context_manager_closes_session(self, cache):
        """Test that leaving the context closes the session."""
        session = Mock(spec=requests.Session)
        session.headers = {}

        with RequestPipeline(cache, session=session) as pipeline:
            assert pipeline.session is session

        session.close.assert_called_once()
