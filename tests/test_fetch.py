import os
import time
from datetime import timedelta

import httpx
import pytest

from muni_assessments.fetch import CSVClient, parse_ttl

URL = "https://example.test/data/muni-real-estate-time-series.csv"


@pytest.mark.parametrize("ttl, expected", [
    (None, None),
    (60, timedelta(seconds=60)),
    ("30m", timedelta(minutes=30)),
    ("2d", timedelta(days=2)),
    ("1w", timedelta(weeks=1)),
    ("90", timedelta(seconds=90)),
    (timedelta(hours=1), timedelta(hours=1)),
])
def test_parse_ttl(ttl, expected):
    assert parse_ttl(ttl) == expected


def test_parse_ttl_invalid():
    with pytest.raises(ValueError):
        parse_ttl([1])


@pytest.fixture
def calls():
    return []


@pytest.fixture
def client(tmp_path, calls, assessments_csv):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        if request.url.path.endswith("missing.csv"):
            return httpx.Response(404)
        return httpx.Response(200, text=assessments_csv)

    with CSVClient(cache_dir=tmp_path / "cache", transport=httpx.MockTransport(handler)) as c:
        yield c


class TestCSVClient:
    def test_fetch_and_cache(self, client, calls, assessments_csv):
        assert client.fetch_text(URL) == assessments_csv
        assert client.cache_path(URL).name == "muni-real-estate-time-series.csv"
        assert client.cache_path(URL).read_text() == assessments_csv

        assert client.fetch_text(URL) == assessments_csv
        assert calls == [URL]

    def test_no_cache(self, client, calls):
        client.fetch_text(URL, use_cache=False)
        client.fetch_text(URL, use_cache=False)
        assert len(calls) == 2
        assert not client.cache_path(URL).exists()

    def test_expired_cache_refetched(self, client, calls):
        path = client.cache_path(URL)
        path.write_text("stale")
        day_ago = time.time() - 86400
        os.utime(path, (day_ago, day_ago))
        assert client.fetch_text(URL, ttl="1h") != "stale"
        assert len(calls) == 1

    def test_http_error(self, client, calls):
        with pytest.raises(httpx.HTTPStatusError):
            client.fetch_text("https://example.test/missing.csv")
        assert len(calls) == 1
