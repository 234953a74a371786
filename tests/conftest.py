"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import os
import sys
from collections.abc import Generator
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of pkgindex modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("pkgindex"):
        del sys.modules[module_name]


@pytest.fixture(autouse=True)
def isolated_global_config(tmp_path_factory: pytest.TempPathFactory) -> Generator[None, None, None]:
    """Keep the user's ~/.config/pkgindex/config.yaml out of every test."""
    from pkgindex.config import loader

    missing = tmp_path_factory.mktemp("global-config") / "config.yaml"
    original = loader.GLOBAL_CONFIG_PATH
    loader.GLOBAL_CONFIG_PATH = missing
    yield
    loader.GLOBAL_CONFIG_PATH = original


@pytest.fixture(autouse=True)
def clean_pkgindex_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep PKGINDEX__* variables from the outer environment out of the tests."""
    for var in list(os.environ):
        if var.upper().startswith("PKGINDEX__"):
            monkeypatch.delenv(var)
