from __future__ import annotations

import json

import pytest

from tech_news import config
from tech_news.source_manager import get_source
from tech_news.sources.mock import MockSource
from tech_news.sources.rss import RSSSource


def test_load_config_writes_defaults_when_missing(tmp_path):
    path = tmp_path / "technews" / "config.json"
    loaded = config.load_config(str(path))

    assert path.exists()
    assert loaded == config.DEFAULT_CONFIG
    with open(path) as f:
        assert json.load(f) == config.DEFAULT_CONFIG


def test_load_config_merges_user_values_over_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"source": "rss", "firecrawl": {"batch_size": 7}}))

    loaded = config.load_config(str(path))
    assert loaded["source"] == "rss"
    assert loaded["firecrawl"]["batch_size"] == 7
    assert loaded["firecrawl"]["base_url"] == config.FIRECRAWL_BASE_URL
    assert loaded["auto_enhance"] is True


def test_invalid_config_falls_back_to_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{broken")
    assert config.load_config(str(path)) == config.DEFAULT_CONFIG


def test_save_config_round_trips(tmp_path):
    path = str(tmp_path / "nested" / "config.json")
    config.save_config({"source": "mock"}, path)
    assert config.load_config(path)["source"] == "mock"


def test_api_key_prefers_environment(monkeypatch):
    monkeypatch.setenv("FIRECRAWL_API_KEY", "from-env")
    assert config.get_firecrawl_api_key({"firecrawl": {"api_key": "from-file"}}) == "from-env"


def test_api_key_from_config_file(monkeypatch):
    monkeypatch.delenv("FIRECRAWL_API_KEY", raising=False)
    assert config.get_firecrawl_api_key({"firecrawl": {"api_key": " from-file "}}) == "from-file"


def test_blank_api_key_means_unconfigured(monkeypatch):
    monkeypatch.setenv("FIRECRAWL_API_KEY", "")
    assert config.get_firecrawl_api_key({"firecrawl": {"api_key": "  "}}) is None
    assert config.get_firecrawl_api_key({}) is None


def test_get_source_defaults_to_mock():
    assert isinstance(get_source(config.DEFAULT_CONFIG), MockSource)


def test_get_source_uses_rss_when_feeds_configured():
    cfg = {"source": "rss", "sources": {"rss": {"feeds": {"HN": "https://hnrss.org/frontpage"}}}}
    source = get_source(cfg)
    assert isinstance(source, RSSSource)
    assert source.feeds == {"HN": "https://hnrss.org/frontpage"}


def test_get_source_falls_back_to_mock_without_feeds():
    assert isinstance(get_source(config.DEFAULT_CONFIG, "rss"), MockSource)


def test_get_source_rejects_unknown_names():
    with pytest.raises(ValueError):
        get_source({"source": "teletext"})


def test_build_state_wires_components(tmp_path, monkeypatch):
    from tech_news.main import build_state

    monkeypatch.setattr("tech_news.main.CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.delenv("FIRECRAWL_API_KEY", raising=False)
    db_path = str(tmp_path / "db" / "tech_news.db")

    state = build_state(config.DEFAULT_CONFIG, db_path, enhance=False)

    assert isinstance(state.source, MockSource)
    assert state.store.db_path == db_path
    assert (tmp_path / "db").is_dir()
    assert state.enhancer.is_configured is False
    assert state.auto_enhance is False
    state.enhancer.close()


def test_main_exits_on_unknown_source(tmp_path, monkeypatch):
    from tech_news import main as main_module

    monkeypatch.setattr(main_module, "load_config", lambda: {"source": "teletext"})
    with pytest.raises(SystemExit) as excinfo:
        main_module.main(["--db", str(tmp_path / "tech_news.db")])
    assert excinfo.value.code == 2


def test_mock_latency_comes_from_its_source_block():
    assert get_source(config.DEFAULT_CONFIG).latency == 1.0
    cfg = {"source": "mock", "sources": {"mock": {"latency": 0.25}}}
    assert get_source(cfg).latency == 0.25
