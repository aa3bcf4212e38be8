from __future__ import annotations

from pathlib import Path
from urllib.parse import parse_qs, urlsplit

from nicehtml.configuration import FetchSettings
from nicehtml.resolution import ContentResolver, cache_bust_url
from nicehtml.types import Fragment

URL = "https://example.test/page.nh"


def _remote(source: str = URL, index: int = 0) -> Fragment:
    return Fragment(origin="remote", discovery_index=index, source=source)


def _stamp(url: str) -> str:
    return parse_qs(urlsplit(url).query)["timestamp"][0]


def test_cache_bust_url_appends_and_replaces_parameter():
    assert cache_bust_url(URL, "timestamp", 5) == URL + "?timestamp=5"
    busted = cache_bust_url(URL + "?v=2&timestamp=1", "timestamp", 9)
    query = parse_qs(urlsplit(busted).query)
    assert query == {"v": ["2"], "timestamp": ["9"]}


def test_sequential_fetches_use_distinct_timestamps(make_http, make_resolver):
    stamps = iter([1_700_000_000_000, 1_700_000_000_250])
    http = make_http({URL: (200, "div")})
    resolver = make_resolver(http, clock=lambda: next(stamps))

    first = resolver.resolve(_remote())
    second = resolver.resolve(_remote())

    assert first.ok and second.ok
    urls = [call["url"] for call in http.calls]
    assert _stamp(urls[0]) == "1700000000000"
    assert _stamp(urls[1]) == "1700000000250"
    assert urls[0] != urls[1]


def test_remote_fetch_sends_no_cache_headers(make_http, make_resolver):
    http = make_http({URL: (200, "div")})
    resolver = make_resolver(
        http,
        settings=FetchSettings(timeout_s=3.0, headers={"X-Token": "abc"}),
    )

    result = resolver.resolve(_remote())

    assert result.content == "div"
    call = http.calls[0]
    assert call["timeout"] == 3.0
    assert call["headers"]["Cache-Control"] == "no-cache"
    assert call["headers"]["X-Token"] == "abc"


def test_cache_busting_can_be_disabled(make_http, make_resolver):
    http = make_http({URL: (200, "div")})
    resolver = make_resolver(http, settings=FetchSettings(cache_bust=False))

    resolver.resolve(_remote())

    assert http.calls[0]["url"] == URL


def test_error_status_becomes_failure_result(make_http, make_resolver, caplog):
    http = make_http({URL: (404, "missing")})
    resolver = make_resolver(http)

    with caplog.at_level("ERROR"):
        result = resolver.resolve(_remote())

    assert not result.ok
    assert result.content is None
    assert "HTTP 404" in (result.error or "")
    assert "Error loading fragment #0" in caplog.text


def test_connection_error_becomes_failure_result(make_http, make_resolver):
    resolver = make_resolver(make_http(offline=True))

    result = resolver.resolve(_remote())

    assert not result.ok
    assert "network disabled" in (result.error or "")


def test_inline_fragment_resolves_without_network(make_http, make_resolver):
    http = make_http(offline=True)
    resolver = make_resolver(http)
    fragment = Fragment(origin="inline", discovery_index=0, raw_content="p")

    result = resolver.resolve(fragment)

    assert result.ok
    assert result.content == "p"
    assert http.calls == []


def test_file_sources_are_read_from_disk(tmp_path: Path, make_http, make_resolver):
    source = tmp_path / "card.nh"
    source.write_text('div\n    "card"\n', encoding="utf-8")
    http = make_http(offline=True)
    resolver = make_resolver(http)

    result = resolver.resolve(_remote(source.as_uri()))
    missing = resolver.resolve(_remote((tmp_path / "nope.nh").as_uri(), 1))

    assert result.ok
    assert result.content == 'div\n    "card"\n'
    assert not missing.ok
    assert http.calls == []


def test_close_releases_session(make_http, make_resolver):
    http = make_http()
    resolver = make_resolver(http)
    resolver.close()
    assert http.closed
