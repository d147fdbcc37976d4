"""
lambda_bundle
-------------

람다 소스를 번들러로 하나의 스크립트로 컴파일하고,
base64 로 인코딩해서 Cerebro 의 updateLambda 뮤테이션으로 올린다.

번들 결과물은 디스크에 쓰지 않는다. 빌드 1회마다 새 InMemoryFileSystem 을 만들어
번들러 출력을 받고, 빌드가 끝나면 버린다.
"""

from __future__ import annotations

import base64
import binascii
import posixpath
import shlex
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Tuple

from .errors import BuildError, RemoteRejectedError, raise_for_graphql_errors
from .graphql_client import GraphQLClient
from .logging_utils import get_logger
from .subprocess_utils import run_command


logger = get_logger(__name__)

LAMBDA_TENANT_ID = 0

UPDATE_LAMBDA_MUTATION = """
mutation updateLambda($input: UpdateLambdaInput!) {
    updateLambda(input: $input)
}
"""


class InMemoryFileSystem:
    """번들러 출력을 받는 POSIX 경로 기반 메모리 파일시스템."""

    def __init__(self) -> None:
        self._files: Dict[str, bytes] = {}

    @staticmethod
    def _normalize(path: str) -> str:
        return posixpath.normpath(posixpath.join("/", path))

    def write_file(self, path: str, data: bytes) -> None:
        self._files[self._normalize(path)] = bytes(data)

    def read_file(self, path: str) -> bytes:
        key = self._normalize(path)
        try:
            return self._files[key]
        except KeyError:
            raise FileNotFoundError(key) from None

    def exists(self, path: str) -> bool:
        return self._normalize(path) in self._files

    def listdir(self) -> List[str]:
        return sorted(self._files)


@dataclass(frozen=True)
class BundlerConfig:
    entry: str
    output_path: str = "/dist"
    output_filename: str = "index.js"
    command: str = "npx esbuild"
    timeout: float = 300.0

    @property
    def output_file(self) -> str:
        return posixpath.join(self.output_path, self.output_filename)


@dataclass(frozen=True)
class CompileResult:
    errors: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


class Compiler(Protocol):
    async def run(
        self,
        config: BundlerConfig,
        output_fs: InMemoryFileSystem,
        *,
        production: bool,
    ) -> CompileResult:
        ...


class CommandCompiler:
    """
    esbuild 호환 CLI 로 번들한다.

    --outfile 없이 실행하면 결과가 stdout 으로 나오므로,
    그 바이트를 그대로 메모리 파일시스템의 출력 경로에 기록한다.
    """

    def __init__(self, cwd: Optional[str] = None) -> None:
        self._cwd = cwd

    def command_for(self, config: BundlerConfig, *, production: bool) -> List[str]:
        cmd = shlex.split(config.command) + [
            config.entry,
            "--bundle",
            "--platform=node",
            "--format=esm",
            "--log-level=warning",
        ]
        if production:
            cmd.append("--minify")
        return cmd

    async def run(
        self,
        config: BundlerConfig,
        output_fs: InMemoryFileSystem,
        *,
        production: bool,
    ) -> CompileResult:
        cmd = self.command_for(config, production=production)
        try:
            result = await run_command(cmd, cwd=self._cwd, timeout=config.timeout)
        except RuntimeError as e:
            return CompileResult(errors=(str(e),))

        if result.returncode != 0:
            lines = [line for line in result.stderr.splitlines() if line.strip()]
            return CompileResult(errors=tuple(lines) or (f"exit={result.returncode}",))

        output_fs.write_file(config.output_file, result.stdout)
        return CompileResult()


@dataclass(frozen=True)
class BundleArtifact:
    content: bytes

    def encode(self) -> str:
        return encode_bundle(self.content)


def encode_bundle(content: bytes) -> str:
    return base64.b64encode(content).decode("ascii")


def decode_bundle(encoded: str) -> bytes:
    try:
        return base64.b64decode(encoded.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise ValueError(f"base64 람다 스크립트가 아닙니다: {e}") from e


async def build_bundle(
    config: BundlerConfig,
    compiler: Compiler,
    *,
    production: bool = False,
    fs: Optional[InMemoryFileSystem] = None,
) -> BundleArtifact:
    """
    번들러를 실행하고 출력 파일 하나를 읽어 BundleArtifact 로 돌려준다.

    fs 를 넘기지 않으면 이 호출 전용의 새 파일시스템을 쓴다.
    번들러가 에러를 보고하면 출력 파일을 읽지 않고 BuildError 를 던진다.
    """
    output_fs = fs if fs is not None else InMemoryFileSystem()

    logger.info("람다 번들 빌드: entry=%s, production=%s", config.entry, production)
    result = await compiler.run(config, output_fs, production=production)
    if not result.ok:
        raise BuildError(f"람다 번들 빌드 실패: {config.entry}", result.errors)

    try:
        content = output_fs.read_file(config.output_file)
    except FileNotFoundError as e:
        raise BuildError(f"번들러 출력 파일이 없습니다: {config.output_file}") from e

    logger.info("람다 번들 빌드 완료: %d bytes", len(content))
    return BundleArtifact(content=content)


async def publish_bundle(directory: GraphQLClient, backend_uid: str, artifact: BundleArtifact) -> dict:
    variables = {
        "input": {
            "deploymentID": backend_uid,
            "tenantID": LAMBDA_TENANT_ID,
            "lambdaScript": artifact.encode(),
        }
    }
    logger.info("람다 업로드: deployment=%s", backend_uid)
    response = await directory.request(UPDATE_LAMBDA_MUTATION, variables)
    return raise_for_graphql_errors(response, RemoteRejectedError)
