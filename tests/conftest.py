from __future__ import annotations

import sys
from pathlib import Path

import pytest
import respx


# Ensure the repository-local ``src`` directory is importable when the project is
# not installed as a package.
SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


TOKEN_URL = "https://api.amazon.com/auth/o2/token"


@pytest.fixture
def token_getter():
    return lambda: "dummy-token"


@pytest.fixture
def respx_mock():
    with respx.mock(assert_all_called=False) as respx_mgr:
        yield respx_mgr


@pytest.fixture
def refresher_config():
    from spapi.auth.refresher import RefresherConfig

    return RefresherConfig(
        refresh_token="refresh-123",  # noqa: S106 - deterministic test token
        client_id="amzn1.application-oa2-client.test",
        client_secret="shhh",  # noqa: S106 - placeholder credential
    )
