import pytest

from dgraph_deploy.config import DEFAULT_CEREBRO_URL, DeployConfig, load_env_files


def _base_env() -> dict[str, str]:
    return {
        "DGRAPH_EMAIL": "ops@example.com",
        "DGRAPH_PASSWORD": "secret",
        "BACKEND_NAME": "prod",
        "AUTH0_PUBLIC_KEY": "-----BEGIN PUBLIC KEY-----\nABC\n-----END PUBLIC KEY-----",
        "AUTH0_CLIENT_ID": "xyz",
    }


def test_missing_required_env_raises_value_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    env = _base_env()

    # 필수 값 중 BACKEND_NAME 만 비워둔다.
    for key, value in env.items():
        if key == "BACKEND_NAME":
            continue
        monkeypatch.setenv(key, value)

    with pytest.raises(ValueError) as excinfo:
        DeployConfig.from_env()

    assert "BACKEND_NAME" in str(excinfo.value)


def test_schema_toggle_requires_auth0_values(monkeypatch: pytest.MonkeyPatch) -> None:
    env = _base_env()
    del env["AUTH0_PUBLIC_KEY"]
    del env["AUTH0_CLIENT_ID"]

    for key, value in env.items():
        monkeypatch.setenv(key, value)

    with pytest.raises(ValueError) as excinfo:
        DeployConfig.from_env()

    assert "AUTH0_PUBLIC_KEY" in str(excinfo.value)
    assert "AUTH0_CLIENT_ID" in str(excinfo.value)


def test_lambda_only_does_not_need_auth0_values(monkeypatch: pytest.MonkeyPatch) -> None:
    env = _base_env()
    del env["AUTH0_PUBLIC_KEY"]
    del env["AUTH0_CLIENT_ID"]
    env["DEPLOY_SCHEMA"] = "false"

    for key, value in env.items():
        monkeypatch.setenv(key, value)

    cfg = DeployConfig.from_env()

    assert not cfg.deploy_schema
    assert cfg.deploy_lambda
    assert cfg.cerebro_url == DEFAULT_CEREBRO_URL
    assert cfg.lambda_output_path == "/dist"
    assert cfg.lambda_production


def test_invalid_timeout_raises_value_error(monkeypatch: pytest.MonkeyPatch) -> None:
    for key, value in _base_env().items():
        monkeypatch.setenv(key, value)
    monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "soon")

    with pytest.raises(ValueError) as excinfo:
        DeployConfig.from_env()

    assert "HTTP_TIMEOUT_SECONDS" in str(excinfo.value)


def test_repr_hides_password(monkeypatch: pytest.MonkeyPatch) -> None:
    for key, value in _base_env().items():
        monkeypatch.setenv(key, value)

    cfg = DeployConfig.from_env()

    assert "secret" not in repr(cfg)
    assert "BEGIN PUBLIC KEY" not in repr(cfg)


def test_load_env_files_later_file_wins(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".env").write_text("BACKEND_NAME=staging\nCEREBRO_URL=http://localhost:8080\n")
    (tmp_path / ".env.infra").write_text("BACKEND_NAME=prod\n")
    # load_dotenv 가 os.environ 을 직접 바꾸므로 monkeypatch 가 원복하도록 먼저 등록한다.
    monkeypatch.setenv("BACKEND_NAME", "placeholder")
    monkeypatch.setenv("CEREBRO_URL", "placeholder")

    load_env_files(str(tmp_path))

    import os

    assert os.environ["BACKEND_NAME"] == "prod"
    assert os.environ["CEREBRO_URL"] == "http://localhost:8080"
