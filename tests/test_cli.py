"""Tests for the ``blogtext`` command line."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from blogtext import cli
from blogtext.pipeline import Scraper

from conftest import FakeTransport, article_page, json_feed

BASE = "https://example.com/blog/"

runner = CliRunner()


@pytest.fixture()
def fake_blog(monkeypatch):
    """Route every scraper built by the CLI through an in-memory blog."""
    transport = FakeTransport({
        BASE + "f.json": json_feed([
            {"url": BASE + "zebra", "title": "Zebra"},
            {"url": BASE + "aardvark", "title": "Aardvark"},
        ]),
        BASE + "zebra": article_page("Zebra", ["Stripes, mostly."]),
        BASE + "aardvark": article_page("Aardvark", ["Eats ants."]),
    })

    def build(config=None, extractor=None):
        return Scraper(config=config, transport=transport, extractor=extractor)

    monkeypatch.setattr(cli, "Scraper", build)
    return transport


class TestCli:
    def test_exports_both_formats(self, fake_blog, tmp_path) -> None:
        result = runner.invoke(cli.app, ["example.com/blog", "-o", str(tmp_path), "-q"])

        assert result.exit_code == 0, result.output
        files = sorted(p.suffix for p in tmp_path.iterdir())
        assert files == [".csv", ".json"]
        data = json.loads(next(tmp_path.glob("*.json")).read_text(encoding="utf-8"))
        assert [p["title"] for p in data] == ["Zebra", "Aardvark"]
        assert data[0]["content"] == "Stripes, mostly."

    def test_sort_filter_and_single_format(self, fake_blog, tmp_path) -> None:
        result = runner.invoke(
            cli.app,
            [BASE, "-o", str(tmp_path), "-f", "json", "--sort", "title-asc", "-q"],
        )

        assert result.exit_code == 0, result.output
        assert [p.suffix for p in tmp_path.iterdir()] == [".json"]
        data = json.loads(next(tmp_path.glob("*.json")).read_text(encoding="utf-8"))
        assert [p["title"] for p in data] == ["Aardvark", "Zebra"]

    def test_limit(self, fake_blog, tmp_path) -> None:
        result = runner.invoke(cli.app, [BASE, "-o", str(tmp_path), "-f", "json", "-n", "1", "-q"])

        assert result.exit_code == 0, result.output
        data = json.loads(next(tmp_path.glob("*.json")).read_text(encoding="utf-8"))
        assert len(data) == 1
        assert BASE + "aardvark" not in fake_blog.fetched

    def test_unreachable_blog_exits_nonzero(self, monkeypatch, tmp_path) -> None:
        monkeypatch.setattr(
            cli, "Scraper", lambda config=None, extractor=None: Scraper(config, FakeTransport(), extractor)
        )
        result = runner.invoke(cli.app, [BASE, "-o", str(tmp_path), "-q"])

        assert result.exit_code == 1
        assert "Error discovering posts" in result.output
        assert list(tmp_path.iterdir()) == []

    def test_unknown_format(self, fake_blog, tmp_path) -> None:
        result = runner.invoke(cli.app, [BASE, "-o", str(tmp_path), "-f", "epub"])
        assert result.exit_code == 1
        assert "unknown format" in result.output

    def test_semantic_without_api_key(self, fake_blog, monkeypatch, tmp_path) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.delenv("BLOGTEXT_LLM_API_KEY", raising=False)
        result = runner.invoke(cli.app, [BASE, "-o", str(tmp_path), "--semantic"])
        assert result.exit_code == 1
        assert "API_KEY" in result.output
