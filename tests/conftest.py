"""PyTest configuration for linqpipe tests.

Keeps every test independent of the developer's ~/.linqpipe.toml and any
LINQPIPE_* variables exported in the shell.
"""

import os
import logging
import pytest
from linqpipe.util.config import reset_config
from linqpipe.util.constants import ENV_PREFIX

logger = logging.getLogger(__name__)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Point HOME at an empty directory and drop LINQPIPE_* variables."""
    monkeypatch.setenv("HOME", str(tmp_path))
    for key in list(os.environ.keys()):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()
