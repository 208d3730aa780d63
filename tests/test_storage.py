import os

import pytest

from gilbert import storage
from gilbert.fs import exists
from gilbert.storage import (
    STORE_VAR_NAME,
    StorageError,
    StorageType,
    delete,
    home,
    local_path,
    path,
)


@pytest.fixture(autouse=True)
def fresh_storage(monkeypatch):
    monkeypatch.setattr(storage, "_storage_dir", None)
    monkeypatch.delenv(STORE_VAR_NAME, raising=False)


def test_home_default_cache_dir():
    assert home() == os.path.join(os.path.expanduser("~"), ".gilbert")


def test_home_override_from_env(monkeypatch):
    monkeypatch.setenv(STORE_VAR_NAME, "testdata")
    assert home() == "testdata"


def test_home_env_value_is_kept(monkeypatch):
    monkeypatch.setenv(STORE_VAR_NAME, "testdata")
    assert home() == "testdata"
    monkeypatch.setenv(STORE_VAR_NAME, "other")
    assert home() == "testdata"


def test_path_unknown_type(monkeypatch):
    monkeypatch.setenv(STORE_VAR_NAME, "testdata")
    with pytest.raises(StorageError, match="unknown storage type"):
        path(48)


def test_path_root(monkeypatch):
    monkeypatch.setenv(STORE_VAR_NAME, "testdata")
    assert path(StorageType.ROOT, "foo") == os.path.join("testdata", "foo")


def test_path_plugins(monkeypatch):
    monkeypatch.setenv(STORE_VAR_NAME, "testdata")
    assert path(StorageType.PLUGINS, "a", "b") == os.path.join("testdata", "plugins", "a", "b")


def test_path_without_items(monkeypatch):
    monkeypatch.setenv(STORE_VAR_NAME, "testdata")
    assert path(StorageType.PLUGINS) == os.path.join("testdata", "plugins")


def test_local_path_unknown_type():
    with pytest.raises(StorageError):
        local_path(48)


def test_local_path(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    cwd = os.getcwd()
    assert local_path(StorageType.ROOT, "foo") == os.path.join(cwd, ".gilbert", "foo")


def test_delete_unknown_type(monkeypatch):
    monkeypatch.setenv(STORE_VAR_NAME, "testdata")
    with pytest.raises(StorageError):
        delete(48)


def test_delete_root(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv(STORE_VAR_NAME, "testdata")
    os.mkdir("testdata")
    assert exists(path(StorageType.ROOT)) is True
    delete(StorageType.ROOT)
    assert exists(path(StorageType.ROOT)) is False


def test_delete_single_item(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv(STORE_VAR_NAME, "testdata")
    plugins = tmp_path / "testdata" / "plugins"
    plugins.mkdir(parents=True)
    (plugins / "item").write_text("x")
    delete(StorageType.PLUGINS, "item")
    assert exists(path(StorageType.PLUGINS, "item")) is False
    assert exists(path(StorageType.PLUGINS)) is True