import logging

import pytest

from addrindex.config import loader


@pytest.fixture(autouse=True)
def restore_root_logger():
    """LogManager replaces the root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def home(tmp_path, monkeypatch):
    """Isolated home directory, working directory and system config file."""
    home = tmp_path / "home"
    home.mkdir()
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.setattr(loader, "home_dir", lambda: home)
    monkeypatch.setattr(loader, "SYSTEM_CONFIG_FILE", str(tmp_path / "etc" / "config.toml"))
    monkeypatch.chdir(workdir)
    for key in loader.RawConfig.keys():
        monkeypatch.delenv("ADDRINDEX_" + key.upper(), raising=False)
    return home
