from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, List

from dotenv import load_dotenv


ENV_FILES_DEFAULT_ORDER = [".env", ".env.infra", ".env.secrets"]

DEFAULT_CEREBRO_URL = "https://cerebro.cloud.dgraph.io"


def load_env_files(base_dir: str = ".",
                   files: Optional[List[str]] = None) -> None:
    """
    주어진 디렉토리에서 .env 계열 파일을 순서대로 로드한다.
    후순위 파일이 같은 키를 덮어쓴다.
    """
    order = files or ENV_FILES_DEFAULT_ORDER
    for name in order:
        path = os.path.join(base_dir, name)
        if os.path.exists(path):
            load_dotenv(path, override=True)


def _get_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "y"}


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} 값이 숫자가 아닙니다: {raw!r}") from e


@dataclass
class DeployConfig:
    # 필수 공통
    dgraph_email: str
    dgraph_password: str
    backend_name: str

    cerebro_url: str = DEFAULT_CEREBRO_URL

    # 스키마
    schema_path: str = "schema.graphql"
    auth0_public_key: Optional[str] = None
    auth0_client_id: Optional[str] = None

    # 람다 번들
    lambda_entry: str = "src/index.ts"
    lambda_output_path: str = "/dist"
    lambda_output_filename: str = "index.js"
    lambda_bundler_cmd: str = "npx esbuild"
    lambda_production: bool = True

    # 부분 배포
    deploy_schema: bool = True
    deploy_lambda: bool = True

    http_timeout_seconds: float = 30.0
    build_timeout_seconds: float = 300.0

    def __repr__(self) -> str:
        # 비밀번호/키는 로그에 남기지 않는다.
        return (
            f"DeployConfig(dgraph_email={self.dgraph_email!r}, backend_name={self.backend_name!r}, "
            f"cerebro_url={self.cerebro_url!r}, schema_path={self.schema_path!r}, "
            f"lambda_entry={self.lambda_entry!r}, deploy_schema={self.deploy_schema}, "
            f"deploy_lambda={self.deploy_lambda})"
        )

    @classmethod
    def from_env(cls) -> "DeployConfig":
        # 필수값
        missing: List[str] = []
        def req(name: str) -> str:
            val = os.getenv(name)
            if not val:
                missing.append(name)
            return val or ""

        cfg = cls(
            dgraph_email=req("DGRAPH_EMAIL"),
            dgraph_password=req("DGRAPH_PASSWORD"),
            backend_name=req("BACKEND_NAME"),
            cerebro_url=os.getenv("CEREBRO_URL") or DEFAULT_CEREBRO_URL,
            schema_path=os.getenv("SCHEMA_PATH") or "schema.graphql",
            auth0_public_key=os.getenv("AUTH0_PUBLIC_KEY"),
            auth0_client_id=os.getenv("AUTH0_CLIENT_ID"),
            lambda_entry=os.getenv("LAMBDA_ENTRY") or "src/index.ts",
            lambda_output_path=os.getenv("LAMBDA_OUTPUT_PATH") or "/dist",
            lambda_output_filename=os.getenv("LAMBDA_OUTPUT_FILENAME") or "index.js",
            lambda_bundler_cmd=os.getenv("LAMBDA_BUNDLER_CMD") or "npx esbuild",
            lambda_production=_get_bool("LAMBDA_PRODUCTION", True),
            deploy_schema=_get_bool("DEPLOY_SCHEMA", True),
            deploy_lambda=_get_bool("DEPLOY_LAMBDA", True),
            http_timeout_seconds=_get_float("HTTP_TIMEOUT_SECONDS", 30.0),
            build_timeout_seconds=_get_float("BUILD_TIMEOUT_SECONDS", 300.0),
        )

        # 스키마 배포 시에는 Authorization 지시문에 들어갈 값이 필요
        if cfg.deploy_schema:
            if not cfg.auth0_public_key:
                missing.append("AUTH0_PUBLIC_KEY")
            if not cfg.auth0_client_id:
                missing.append("AUTH0_CLIENT_ID")

        if missing:
            raise ValueError(
                "필수 환경변수가 누락되었습니다: " + ", ".join(sorted(set(missing)))
            )

        return cfg
