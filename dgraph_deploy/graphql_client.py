"""
graphql_client
--------------

Dgraph Cloud 의 두 원격 서비스(Cerebro 디렉토리 서비스, 백엔드별 /admin 엔드포인트)에
GraphQL 요청을 보내는 핸들과, 그 핸들을 만드는 팩토리.

핸들 생성 시점에는 네트워크 I/O 가 없고, 실패는 첫 request() 에서만 드러난다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

import httpx

from .config import DEFAULT_CEREBRO_URL
from .errors import TransportError
from .logging_utils import get_logger


logger = get_logger(__name__)

DIRECTORY_AUTH_HEADER = "authorization"
ADMIN_AUTH_HEADER = "X-Auth-Token"


@dataclass(frozen=True)
class GraphQLError:
    message: str
    path: Tuple[Any, ...] = ()
    extensions: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, raw: Any) -> "GraphQLError":
        if not isinstance(raw, dict):
            return cls(message=str(raw))
        return cls(
            message=str(raw.get("message", "")),
            path=tuple(raw.get("path") or ()),
            extensions=dict(raw.get("extensions") or {}),
        )


@dataclass(frozen=True)
class GraphQLResponse:
    """
    요청 결과. data 와 errors 중 하나 이상이 채워져 있다.
    (GraphQL 은 부분 성공 시 둘 다 돌려줄 수 있다)
    """

    data: Optional[Dict[str, Any]]
    errors: Tuple[GraphQLError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


class GraphQLClient:
    """
    하나의 엔드포인트에 묶인 재사용 가능한 요청 핸들.

    async with 로 사용하면 종료 시 내부 httpx.AsyncClient 를 닫는다.
    """

    def __init__(
        self,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url
        self._headers: Dict[str, str] = dict(headers or {})
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._headers)

    def set_header(self, name: str, value: str) -> "GraphQLClient":
        """이미 만들어진 핸들에 헤더(주로 인증 토큰)를 붙인다."""
        self._headers[name] = value
        return self

    async def request(
        self,
        query: str,
        variables: Optional[Mapping[str, Any]] = None,
    ) -> GraphQLResponse:
        payload: Dict[str, Any] = {"query": query}
        if variables is not None:
            payload["variables"] = dict(variables)

        logger.debug("GraphQL 요청: %s", self.url)
        try:
            resp = await self._client.post(self.url, json=payload, headers=self._headers)
        except httpx.HTTPError as e:
            raise TransportError(f"요청 실패: {self.url} ({e})") from e

        try:
            body = resp.json()
        except ValueError as e:
            raise TransportError(
                f"JSON 이 아닌 응답입니다: {self.url} (status={resp.status_code})"
            ) from e

        if not isinstance(body, dict) or ("data" not in body and "errors" not in body):
            raise TransportError(
                f"GraphQL 형식이 아닌 응답입니다: {self.url} (status={resp.status_code})"
            )

        errors = tuple(GraphQLError.from_payload(e) for e in body.get("errors") or ())
        if not errors and resp.is_error:
            raise TransportError(f"HTTP {resp.status_code}: {self.url}")

        data = body.get("data")
        return GraphQLResponse(data=data if isinstance(data, dict) else None, errors=errors)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GraphQLClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()


class RemoteClientFactory:
    """
    디렉토리 서비스 주소를 주입받아 핸들을 만든다.
    테스트에서는 transport 에 httpx.MockTransport 를 넘겨 로컬 가짜 서비스를 붙인다.
    """

    def __init__(
        self,
        directory_url: str = DEFAULT_CEREBRO_URL,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.directory_url = directory_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _new(self, url: str) -> GraphQLClient:
        return GraphQLClient(url, timeout=self._timeout, transport=self._transport)

    def directory_client(self, credential: Optional[str] = None) -> GraphQLClient:
        client = self._new(f"{self.directory_url}/graphql")
        if credential:
            client.set_header(DIRECTORY_AUTH_HEADER, f"Bearer {credential}")
        return client

    def admin_client(self, base_url: str, token: Optional[str] = None) -> GraphQLClient:
        client = self._new(f"{base_url.rstrip('/')}/admin")
        if token:
            client.set_header(ADMIN_AUTH_HEADER, token)
        return client
