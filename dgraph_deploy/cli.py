import os
import sys
from typing import Optional

import click

from .config import load_env_files, DeployConfig
from .errors import DeployError
from .logging_utils import setup_logging, get_logger
from .orchestrator import ALL_SECTIONS, apply_all, authorization_keys, check_all, describe_error, plan_all
from .schema import build_schema


logger = get_logger(__name__)


@click.group()
@click.option(
    "-C",
    "--chdir",
    "chdir",
    type=click.Path(file_okay=False, dir_okay=True, exists=True),
    default=".",
    help="작업 디렉토리 (기본: 현재 디렉토리). env 파일과 상대경로 SCHEMA_PATH/LAMBDA_ENTRY 의 기준",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="로그 레벨을 DEBUG로 올립니다. (-vv 이면 HTTP 요청 로그까지 출력)",
)
@click.pass_context
def main(ctx: click.Context, chdir: str, verbose: int) -> None:
    """Dgraph Cloud 스키마 / 람다 배포용 CLI"""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["chdir"] = chdir
    ctx.obj["verbose"] = verbose


def _load_config_from_ctx(ctx: click.Context) -> DeployConfig:
    base_dir: str = ctx.obj["chdir"]
    load_env_files(base_dir)
    cfg = DeployConfig.from_env()
    # 상대경로는 -C 디렉토리 기준으로 해석한다.
    if not os.path.isabs(cfg.schema_path):
        cfg.schema_path = os.path.join(base_dir, cfg.schema_path)
    if not os.path.isabs(cfg.lambda_entry):
        cfg.lambda_entry = os.path.join(base_dir, cfg.lambda_entry)
    logger.debug("Config loaded: %r", cfg)
    return cfg


def _config_or_exit(ctx: click.Context) -> DeployConfig:
    try:
        return _load_config_from_ctx(ctx)
    except ValueError as e:
        click.echo(f"[ERROR] 설정 로드 실패: {e}", err=True)
        sys.exit(1)


def _echo_error(prefix: str, exc: BaseException) -> None:
    for line in describe_error(exc):
        click.echo(f"[ERROR] {prefix}: {line}", err=True)


@main.command()
@click.pass_context
def plan(ctx: click.Context) -> None:
    """현재 설정(.env/.env.infra/.env.secrets)을 요약 및 섹션별 ENABLED/SKIPPED 상태로 출력"""
    cfg = _config_or_exit(ctx)
    click.echo(plan_all(cfg))


@main.command(name="deploy")
@click.option(
    "--only",
    "only",
    type=str,
    default="",
    help="쉼표로 구분된 섹션 이름(schema,lambda). "
    "기본 동작은 DEPLOY_SCHEMA/DEPLOY_LAMBDA 토글을 사용합니다.",
)
@click.pass_context
def deploy(ctx: click.Context, only: str) -> None:
    """스키마와 람다를 대상 백엔드에 배포"""
    cfg = _config_or_exit(ctx)

    only_list: Optional[list[str]] = None
    if only.strip():
        only_list = [p.strip() for p in only.split(",") if p.strip()]

        # --only 섹션 이름 검증
        invalid = sorted({s for s in only_list if s not in ALL_SECTIONS})
        if invalid:
            click.echo(
                "[ERROR] 잘못된 섹션 이름이 있습니다: "
                + ", ".join(invalid)
                + f"\n허용되는 섹션: {', '.join(ALL_SECTIONS)}",
                err=True,
            )
            sys.exit(1)

    try:
        summary, has_failures = apply_all(cfg, only_sections=only_list)
    except DeployError as e:
        logger.debug("배포 중 오류 발생", exc_info=True)
        _echo_error("배포 실패", e)
        sys.exit(1)

    click.echo(summary)

    # 섹션 단위 실패가 있었다면 전체 명령은 실패(exit 1)로 간주
    if has_failures:
        sys.exit(1)


@main.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """
    로그인과 대상 백엔드 조회만 수행해 배포 가능 상태를 점검한다.
    (스키마/람다는 변경하지 않는다)
    """
    cfg = _config_or_exit(ctx)

    try:
        report, has_issues = check_all(cfg)
    except DeployError as e:
        logger.debug("사전 체크 중 오류 발생", exc_info=True)
        _echo_error("체크 실패", e)
        sys.exit(1)

    click.echo(report)

    if has_issues:
        sys.exit(1)


@main.command(name="build-schema")
@click.option(
    "-o",
    "--output",
    "output",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="결과를 파일로 저장합니다. (기본: stdout)",
)
@click.pass_context
def build_schema_cmd(ctx: click.Context, output: Optional[str]) -> None:
    """Authorization 지시문이 붙은 배포용 스키마를 로컬에서 렌더링한다."""
    cfg = _config_or_exit(ctx)

    try:
        artifact = build_schema(cfg.schema_path, authorization_keys(cfg))
    except DeployError as e:
        _echo_error("스키마 빌드 실패", e)
        sys.exit(1)

    if output:
        with open(output, "w", encoding="utf-8", newline="") as f:
            f.write(artifact.text)
        click.echo(f"스키마를 저장했습니다: {output}")
    else:
        click.echo(artifact.text, nl=False)
