from __future__ import annotations

import asyncio
from dataclasses import dataclass
from textwrap import shorten
from typing import Mapping, Sequence

from .logging_utils import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class RunResult:
    returncode: int
    stdout: bytes
    stderr: str


async def run_command(
    cmd: Sequence[str],
    *,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = 900.0,
) -> RunResult:
    """
    subprocess 실행 공통 유틸 (asyncio).

    - stdout 은 bytes 그대로 캡처한다 (번들 결과물이 바이트 단위로 보존되어야 함)
    - stderr 는 진단 메시지용 텍스트로 디코딩
    - exit code 로 실패를 판단하는 것은 호출자의 몫
    """
    logger.info("명령 실행: %s", " ".join(cmd))

    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=cwd,
            env=dict(env) if env is not None else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise RuntimeError(
            f"필요한 명령을 찾을 수 없습니다: {cmd[0]} (node/npx 가 설치되어 있는지 확인하세요)"
        ) from e

    try:
        stdout, stderr_raw = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError as e:
        proc.kill()
        await proc.wait()
        raise RuntimeError(
            f"명령 실행이 {timeout}초 안에 끝나지 않았습니다: {' '.join(cmd)}"
        ) from e

    stderr = stderr_raw.decode("utf-8", errors="replace")
    if stderr.strip():
        logger.debug("명령 stderr: %s", shorten(stderr.strip(), width=2000))
    logger.debug("명령 종료: exit=%s, stdout=%d bytes", proc.returncode, len(stdout))

    return RunResult(returncode=proc.returncode or 0, stdout=stdout, stderr=stderr)
