"""
pytest 설정:

로컬 작업 환경에 설치된 다른 버전의 dgraph_deploy 패키지가 존재할 때,
`pytest` 실행 시 site-packages 쪽이 먼저 import 되어 테스트가 깨질 수 있다.

테스트는 항상 현재 레포의 소스를 대상으로 해야 하므로, repo root 를 sys.path 최상단에 고정한다.
"""

from __future__ import annotations

import os
import sys

import pytest


def pytest_configure() -> None:
    repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)


_CONFIG_ENV_KEYS = (
    "DGRAPH_EMAIL",
    "DGRAPH_PASSWORD",
    "BACKEND_NAME",
    "CEREBRO_URL",
    "SCHEMA_PATH",
    "AUTH0_PUBLIC_KEY",
    "AUTH0_CLIENT_ID",
    "LAMBDA_ENTRY",
    "LAMBDA_OUTPUT_PATH",
    "LAMBDA_OUTPUT_FILENAME",
    "LAMBDA_BUNDLER_CMD",
    "LAMBDA_PRODUCTION",
    "DEPLOY_SCHEMA",
    "DEPLOY_LAMBDA",
    "HTTP_TIMEOUT_SECONDS",
    "BUILD_TIMEOUT_SECONDS",
)


@pytest.fixture(autouse=True)
def _clean_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # 개발자 셸에 남아 있는 값이 DeployConfig.from_env 테스트에 섞이지 않도록 비운다.
    for key in _CONFIG_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
