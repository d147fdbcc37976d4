from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .backends import BackendDescriptor, list_backends, resolve_backend
from .cerebro_auth import acquire_token
from .config import DeployConfig
from .errors import NotFoundError, RemoteError
from .graphql_client import GraphQLClient, RemoteClientFactory
from .lambda_bundle import BundlerConfig, CommandCompiler, Compiler, build_bundle, publish_bundle
from .logging_utils import get_logger
from .schema import AuthorizationKeys, build_schema, publish_schema


logger = get_logger(__name__)

# CLI 등에서 사용할 수 있도록 섹션 이름을 상수로 노출
ALL_SECTIONS: List[str] = [
    "schema",
    "lambda",
]


def _section_enabled(name: str, cfg: DeployConfig) -> bool:
    if name == "schema":
        return cfg.deploy_schema
    if name == "lambda":
        return cfg.deploy_lambda
    return False


def _filter_sections(cfg: DeployConfig, only_sections: Optional[Iterable[str]]) -> List[str]:
    """
    토글/only_sections 에 따라 실제 실행 대상 섹션 목록을 결정한다.
    """
    if only_sections:
        requested = {s for s in only_sections}
        return [s for s in ALL_SECTIONS if s in requested and _section_enabled(s, cfg)]
    return [s for s in ALL_SECTIONS if _section_enabled(s, cfg)]


def make_factory(cfg: DeployConfig) -> RemoteClientFactory:
    return RemoteClientFactory(cfg.cerebro_url, timeout=cfg.http_timeout_seconds)


def bundler_config(cfg: DeployConfig) -> BundlerConfig:
    return BundlerConfig(
        entry=cfg.lambda_entry,
        output_path=cfg.lambda_output_path,
        output_filename=cfg.lambda_output_filename,
        command=cfg.lambda_bundler_cmd,
        timeout=cfg.build_timeout_seconds,
    )


def authorization_keys(cfg: DeployConfig) -> AuthorizationKeys:
    return AuthorizationKeys(
        verification_key=cfg.auth0_public_key or "",
        client_id=cfg.auth0_client_id or "",
    )


def plan_all(cfg: DeployConfig) -> str:
    """
    현재 설정된 옵션 및 어떤 섹션이 활성화/비활성화 되는지
    요약 텍스트를 리턴한다. 원격 호출은 하지 않는다.
    """
    lines: List[str] = []
    lines.append("# Deploy plan")
    lines.append(f"- cerebro: {cfg.cerebro_url}")
    lines.append(f"- backend: {cfg.backend_name}")
    lines.append("")

    # 주요 설정 요약
    lines.append("## Config summary")
    lines.append(f"- schema_path: {cfg.schema_path}")
    lines.append(f"- auth0_client_id: {cfg.auth0_client_id or '(not set)'}")
    lines.append(f"- auth0_public_key: {'(set)' if cfg.auth0_public_key else '(not set)'}")
    lines.append(f"- lambda_entry: {cfg.lambda_entry}")
    lines.append(f"- lambda_bundler_cmd: {cfg.lambda_bundler_cmd}")
    lines.append(f"- lambda_production: {cfg.lambda_production}")
    lines.append(f"- deploy_schema: {cfg.deploy_schema}")
    lines.append(f"- deploy_lambda: {cfg.deploy_lambda}")
    lines.append("")

    lines.append("## Sections")

    for name in ALL_SECTIONS:
        enabled = _section_enabled(name, cfg)
        status = "ENABLED" if enabled else "SKIPPED"
        lines.append(f"- {name}: {status}")

    return "\n".join(lines)


@dataclass
class DeployOutcome:
    backend: BackendDescriptor
    executed: Dict[str, Any] = field(default_factory=dict)
    failed: Dict[str, BaseException] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)


async def _deploy_schema(
    cfg: DeployConfig,
    factory: RemoteClientFactory,
    backend: BackendDescriptor,
) -> dict:
    artifact = build_schema(cfg.schema_path, authorization_keys(cfg))
    async with factory.admin_client(backend.url, backend.jwt_token) as admin:
        return await publish_schema(admin, artifact)


async def _deploy_lambda(
    cfg: DeployConfig,
    directory: GraphQLClient,
    backend: BackendDescriptor,
    compiler: Compiler,
) -> dict:
    artifact = await build_bundle(bundler_config(cfg), compiler, production=cfg.lambda_production)
    return await publish_bundle(directory, backend.uid, artifact)


async def deploy_async(
    cfg: DeployConfig,
    only_sections: Optional[Iterable[str]] = None,
    *,
    factory: Optional[RemoteClientFactory] = None,
    compiler: Optional[Compiler] = None,
) -> DeployOutcome:
    """
    로그인 → 백엔드 조회 → (schema, lambda) 트랙을 동시에 실행한다.

    로그인/조회 실패는 그대로 전파한다. 트랙별 실패는 DeployOutcome.failed 에 담기며,
    다른 트랙을 계속할지 여부는 호출자가 판단한다.
    """
    factory = factory or make_factory(cfg)
    compiler = compiler or CommandCompiler()
    sections = _filter_sections(cfg, only_sections)

    logger.info("적용 대상 섹션: %s", sections)

    token = await acquire_token(factory, cfg.dgraph_email, cfg.dgraph_password)
    async with factory.directory_client(token) as directory:
        backend = await resolve_backend(directory, cfg.backend_name)
        outcome = DeployOutcome(backend=backend)

        jobs = {}
        for name in ALL_SECTIONS:
            if name not in sections:
                outcome.skipped.append(name)
                continue
            logger.info("섹션 실행: %s", name)
            if name == "schema":
                jobs[name] = _deploy_schema(cfg, factory, backend)
            elif name == "lambda":
                jobs[name] = _deploy_lambda(cfg, directory, backend, compiler)

        results = await asyncio.gather(*jobs.values(), return_exceptions=True)

    for name, result in zip(jobs, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.error("섹션 실행 실패: %s (%s)", name, result)
            outcome.failed[name] = result
        else:
            outcome.executed[name] = result

    return outcome


def describe_error(exc: BaseException) -> List[str]:
    """원격 에러는 메시지마다 한 줄씩 풀어서 보여준다."""
    if isinstance(exc, RemoteError):
        return [f"{type(e).__name__}: {e}" for e in exc.split()]
    return [f"{type(exc).__name__}: {exc}"]


def render_summary(outcome: DeployOutcome) -> str:
    lines: List[str] = []
    lines.append("# Deploy summary")
    lines.append(f"- backend: {outcome.backend.name} (uid={outcome.backend.uid})")
    lines.append(f"- url: {outcome.backend.url}")
    lines.append("")

    lines.append("## Executed sections")
    if outcome.executed:
        for s in outcome.executed:
            lines.append(f"- {s}")
    else:
        lines.append("- (none)")

    lines.append("")
    lines.append("## Skipped sections")
    if outcome.skipped:
        for s in outcome.skipped:
            lines.append(f"- {s}")
    else:
        lines.append("- (none)")

    lines.append("")
    lines.append("## Failed sections")
    if outcome.failed:
        for s, exc in outcome.failed.items():
            lines.append(f"- {s}")
            for detail in describe_error(exc):
                lines.append(f"  - {detail}")
    else:
        lines.append("- (none)")

    return "\n".join(lines)


def apply_all(
    cfg: DeployConfig,
    only_sections: Optional[Iterable[str]] = None,
    *,
    factory: Optional[RemoteClientFactory] = None,
    compiler: Optional[Compiler] = None,
) -> tuple[str, bool]:
    """
    섹션별로 실제 배포 로직을 호출한다.

    Returns:
        summary: 사람이 읽기 좋은 텍스트 요약
        has_failures: 하나 이상의 섹션에서 예외가 발생했는지 여부
    """
    outcome = asyncio.run(
        deploy_async(cfg, only_sections, factory=factory, compiler=compiler)
    )
    return render_summary(outcome), bool(outcome.failed)


async def _check_async(cfg: DeployConfig, factory: RemoteClientFactory) -> tuple[List[str], bool]:
    lines: List[str] = []

    token = await acquire_token(factory, cfg.dgraph_email, cfg.dgraph_password)
    lines.append("## Login")
    lines.append(f"- {cfg.dgraph_email}: OK")
    lines.append("")

    async with factory.directory_client(token) as directory:
        backends = await list_backends(directory)
        lines.append("## Backends")
        if backends:
            for b in backends:
                lines.append(f"- {b.name} (uid={b.uid}, zone={b.zone}, mode={b.deployment_mode})")
        else:
            lines.append("- (none)")
        lines.append("")

        lines.append("## Target")
        try:
            backend = await resolve_backend(directory, cfg.backend_name)
        except NotFoundError as e:
            lines.append(f"- {e}")
            return lines, True

    lines.append(f"- name: {backend.name}")
    lines.append(f"- uid: {backend.uid}")
    lines.append(f"- url: {backend.url}")
    lines.append(f"- owner: {backend.owner}")
    lines.append(f"- zone: {backend.zone}")
    lines.append(f"- deployment_mode: {backend.deployment_mode}")
    lines.append(f"- deployment_type: {backend.deployment_type}")
    lines.append(f"- admin token: {'(set)' if backend.jwt_token else '(not set)'}")
    lines.append(f"- lambda deployed: {'yes' if backend.lambda_script else 'no'}")
    return lines, False


def check_all(cfg: DeployConfig, *, factory: Optional[RemoteClientFactory] = None) -> tuple[str, bool]:
    """
    뮤테이션 없이 로그인과 대상 백엔드 조회만 수행해 상태를 점검한다.

    Returns:
        summary: 사람이 읽기 좋은 텍스트 요약
        has_issues: 대상 백엔드를 찾지 못했는지 여부
    """
    factory = factory or make_factory(cfg)
    body, has_issues = asyncio.run(_check_async(cfg, factory))

    lines: List[str] = ["# Deploy pre-check", f"- cerebro: {cfg.cerebro_url}", ""]
    lines.extend(body)
    return "\n".join(lines), has_issues
