import json

import pytest

from services.config import (
    INVALID_URL_MESSAGE,
    BackendConfig,
    ConfigStore,
    validate_backend_config,
)
from services.errors import ConfigurationError

ENV_VARS = (
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "ROSTER_TABLE",
    "ROSTER_OPERATOR",
    "ROSTER_REQUEST_TIMEOUT",
    "ROSTER_EXPORT_DIR",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def store(tmp_path):
    return ConfigStore(state_dir=tmp_path)


@pytest.mark.parametrize("url", [
    "https://abcdefgh.supabase.co",
    "https://abcdefgh.supabase.co/",
])
def test_valid_urls(url):
    validate_backend_config(BackendConfig(url=url, anon_key="key"))


@pytest.mark.parametrize("url", [
    "http://abcdefgh.supabase.co",
    "https://example.com",
    "abcdefgh.supabase.co",
])
def test_invalid_urls(url):
    with pytest.raises(ConfigurationError) as exc:
        validate_backend_config(BackendConfig(url=url, anon_key="key"))
    assert exc.value.message == INVALID_URL_MESSAGE


def test_missing_key_is_rejected():
    with pytest.raises(ConfigurationError):
        validate_backend_config(BackendConfig(url="https://abc.supabase.co", anon_key=""))


def test_from_env(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", " https://abc.supabase.co ")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
    monkeypatch.setenv("ROSTER_TABLE", "pupils")
    monkeypatch.setenv("ROSTER_REQUEST_TIMEOUT", "12")

    config = BackendConfig.from_env()

    assert config.url == "https://abc.supabase.co"
    assert config.anon_key == "anon"
    assert config.table == "pupils"
    assert config.request_timeout == 12.0
    assert config.is_complete


def test_bad_timeout_keeps_default(monkeypatch):
    monkeypatch.setenv("ROSTER_REQUEST_TIMEOUT", "soon")
    assert BackendConfig.from_env().request_timeout == 30.0


def test_nothing_saved(store):
    config = store.load_backend_config()
    assert not config.is_complete
    assert not store.has_saved_backend()
    assert store.get_last_sort() is None


def test_save_and_reload(store, tmp_path):
    store.save_backend_config(BackendConfig(url="https://abc.supabase.co", anon_key="anon"))
    store.set_last_sort("name-desc")

    reloaded = ConfigStore(state_dir=tmp_path)
    config = reloaded.load_backend_config()

    assert config.url == "https://abc.supabase.co"
    assert config.anon_key == "anon"
    assert reloaded.has_saved_backend()
    assert reloaded.get_last_sort() == "name-desc"


def test_saved_values_win_over_env(store, monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://env.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "env-key")
    store.save_backend_config(BackendConfig(url="https://saved.supabase.co", anon_key="saved-key"))

    config = store.load_backend_config()

    assert config.url == "https://saved.supabase.co"
    assert config.anon_key == "saved-key"


def test_env_fills_gaps(store, monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://env.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "env-key")

    assert store.load_backend_config().url == "https://env.supabase.co"


def test_corrupted_file_is_ignored(tmp_path):
    (tmp_path / ConfigStore.STATE_FILE).write_text("{not json", encoding="utf-8")

    store = ConfigStore(state_dir=tmp_path)

    assert not store.has_saved_backend()


def test_only_credentials_are_persisted(store):
    store.save_backend_config(BackendConfig(
        url="https://abc.supabase.co", anon_key="anon", operator="someone", export_dir="/tmp",
    ))

    data = json.loads(store.path.read_text(encoding="utf-8"))

    assert data == {"backend": {"url": "https://abc.supabase.co", "anon_key": "anon"}}


def test_reset(store):
    store.save_backend_config(BackendConfig(url="https://abc.supabase.co", anon_key="anon"))
    store.reset()
    assert not store.has_saved_backend()
