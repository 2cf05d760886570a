"""Tests for the FastAPI job API."""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from blogtext import web
from blogtext.cancel import CancelToken
from blogtext.pipeline import Scraper

from conftest import FakeTransport, article_page, json_feed

BASE = "https://example.com/blog/"


@pytest.fixture()
def transport():
    return FakeTransport({
        BASE + "f.json": json_feed([
            {"url": BASE + "one", "title": "One, with a comma"},
            {"url": BASE + "two", "title": "Two"},
        ]),
        BASE + "one": article_page("One", ["First body, quite a bit longer than the other."]),
        BASE + "two": article_page("Two", ["Second body."]),
    })


@pytest.fixture()
def client(transport, config):
    web.jobs.clear()
    web.app.dependency_overrides[web.get_scraper] = lambda: Scraper(config, transport)
    with TestClient(web.app) as test_client:
        yield test_client
    web.app.dependency_overrides.clear()
    web.jobs.clear()


def _start(client, **payload) -> str:
    response = client.post("/scrape", json={"url": BASE, **payload})
    assert response.status_code == 200
    return response.json()["job_id"]


class TestJobs:
    def test_scrape_job_completes(self, client) -> None:
        job_id = _start(client)

        status = client.get(f"/status/{job_id}").json()
        assert status["status"] == "complete"
        assert status["posts"] == 2
        assert status["error"] is None

        posts = client.get(f"/posts/{job_id}").json()["posts"]
        assert [p["title"] for p in posts] == ["One, with a comma", "Two"]
        assert posts[1] == {"title": "Two", "content": "Second body.", "url": BASE + "two"}

    def test_posts_sorted_filtered_and_counted(self, client) -> None:
        job_id = _start(client)

        posts = client.get(f"/posts/{job_id}", params={"sort": "length-asc"}).json()["posts"]
        assert [p["title"] for p in posts] == ["Two", "One, with a comma"]

        posts = client.get(f"/posts/{job_id}", params={"q": "FIRST"}).json()["posts"]
        assert [p["title"] for p in posts] == ["One, with a comma"]

        posts = client.get(f"/posts/{job_id}", params={"count": 1}).json()["posts"]
        assert len(posts) == 1

    def test_csv_download(self, client) -> None:
        job_id = _start(client)
        response = client.get(f"/posts/{job_id}", params={"format": "csv"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[0] == ["title", "date", "content"]
        assert rows[1][0] == "One, with a comma"

    def test_json_download(self, client) -> None:
        job_id = _start(client)
        response = client.get(f"/posts/{job_id}", params={"format": "json"})

        assert response.status_code == 200
        assert len(json.loads(response.text)) == 2
        assert response.headers["content-disposition"].endswith('.json"')

    def test_unknown_format_rejected(self, client) -> None:
        job_id = _start(client)
        assert client.get(f"/posts/{job_id}", params={"format": "pdf"}).status_code == 422

    def test_invalid_url_is_bad_request(self, client) -> None:
        response = client.post("/scrape", json={"url": "ftp://example.com/"})
        assert response.status_code == 400

    def test_limit_over_maximum_is_bad_request(self, client) -> None:
        response = client.post("/scrape", json={"url": BASE, "limit": 100000})
        assert response.status_code == 400

    def test_unreachable_blog_marks_job_failed(self, client, transport) -> None:
        transport.pages.clear()
        job_id = _start(client)

        status = client.get(f"/status/{job_id}").json()
        assert status["status"] == "error"
        assert BASE in status["error"]

    def test_skipped_posts_reported_as_warnings(self, client, transport) -> None:
        del transport.pages[BASE + "two"]
        job_id = _start(client)

        status = client.get(f"/status/{job_id}").json()
        assert status["status"] == "complete"
        assert status["posts"] == 1
        assert any('"Two"' in w for w in status["warnings"])

    def test_unknown_job(self, client) -> None:
        assert client.get("/status/nope").status_code == 404
        assert client.get("/posts/nope").status_code == 404
        assert client.delete("/jobs/nope").status_code == 404

    def test_cancel_running_job(self, client) -> None:
        token = CancelToken()
        web.jobs["running"] = {
            "status": "processing",
            "progress": "Starting...",
            "error": None,
            "posts": [],
            "warnings": [],
            "created_at": datetime.now(),
            "url": BASE,
            "cancel": token,
        }
        response = client.delete("/jobs/running")

        assert response.status_code == 200
        assert token.cancelled

    def test_old_finished_jobs_expire(self, client) -> None:
        web.jobs["stale"] = {
            "status": "complete",
            "posts": [],
            "warnings": [],
            "created_at": datetime.now() - timedelta(hours=web.JOB_EXPIRY_HOURS + 1),
        }
        _start(client)
        assert "stale" not in web.jobs


class TestStream:
    def test_ndjson_events_end_with_outcome(self, client) -> None:
        response = client.get("/stream", params={"url": BASE})

        assert response.status_code == 200
        events = [json.loads(line) for line in response.text.splitlines() if line]
        assert events[0]["type"] == "status"
        assert [e["data"]["title"] for e in events if e["type"] == "post"] == ["One, with a comma", "Two"]
        assert events[-1] == {"type": "completed", "posts": 2, "cancelled": False}

    def test_stream_invalid_url(self, client) -> None:
        assert client.get("/stream", params={"url": "ftp://example.com/"}).status_code == 400
