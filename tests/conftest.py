import sys
from pathlib import Path

import pytest
from freezegun import freeze_time

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

DEFAULT_ENV = {
    "AWS_ACCESS_KEY_ID": "test-access-key",
    "AWS_SECRET_ACCESS_KEY": "test-secret-key",
    "AWS_SESSION_TOKEN": "test-session",
    "AWS_DEFAULT_REGION": "us-east-1",
}

PRICING_ENV = [
    "PRICE_MARGIN_DEFAULT",
    "PRICE_FLOOR_SAR",
    "PRICE_ROUND_STEP",
    "PRICE_ENDINGS",
    "KSA_DDP_DIVISOR",
    "KSA_DDP_MATRIX_JSON",
    "EXCHANGE_USD_TO_SAR",
    "CATALOG_TABLE",
    "CLOUDWATCH_METRICS_ENABLED",
]


@pytest.fixture(scope="session")
def project_root() -> Path:
    return PROJECT_ROOT


@pytest.fixture(autouse=True)
def _test_env(monkeypatch):
    for key, value in DEFAULT_ENV.items():
        monkeypatch.setenv(key, value)
    for key in PRICING_ENV:
        monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def freezer():
    with freeze_time("2020-01-01T00:00:00Z") as frozen_datetime:
        yield frozen_datetime
