import pytest

from shared.helper.HelperConfig import HelperConfig


@pytest.fixture
def config(helper_config, monkeypatch, tmp_path):
    for key in ("INDEX_CHUNK_THRESHOLD", "SEARCH_RESULT_CAP", "SEARCH_DEFAULT_PROXIMITY", "REINDEX_TIMEOUT", "UPLOAD_DIRECTORY"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("ROOT_DIR", str(tmp_path))
    return helper_config


def test_defaults(config, tmp_path):
    assert config.get_chunk_threshold() == 30000
    assert config.get_result_cap() == 1000
    assert config.get_default_proximity() == 10
    assert config.get_reindex_timeout() == 3600
    assert config.get_upload_directory() == str(tmp_path / "uploads")


def test_overrides(config, monkeypatch):
    monkeypatch.setenv("INDEX_CHUNK_THRESHOLD", "500")
    monkeypatch.setenv("SEARCH_DEFAULT_PROXIMITY", "0")
    monkeypatch.setenv("UPLOAD_DIRECTORY", " /data/pdfs ")
    assert config.get_chunk_threshold() == 500
    assert config.get_default_proximity() == 0
    assert config.get_upload_directory() == "/data/pdfs"


@pytest.mark.parametrize("raw", ["0", "-3", "2.5", "many"])
def test_invalid_threshold_rejected(config, monkeypatch, raw):
    monkeypatch.setenv("INDEX_CHUNK_THRESHOLD", raw)
    with pytest.raises(ValueError):
        config.get_chunk_threshold()


def test_missing_required_value(config, monkeypatch):
    monkeypatch.delenv("APP_API_KEY", raising=False)
    with pytest.raises(ValueError):
        config.get_api_key()


def test_number_parsing(config, monkeypatch):
    monkeypatch.setenv("SEARCH_TIMEOUT", "2.5")
    assert config.get_number_val("search_timeout") == 2.5
    assert isinstance(HelperConfig(config.get_logger()).get_number_val("missing_key", default=7), int)
