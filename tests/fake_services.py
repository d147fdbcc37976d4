"""
테스트용 가짜 Cerebro / admin 서비스와 가짜 번들러.

httpx.MockTransport 로 RemoteClientFactory 에 붙여서 실제 네트워크 없이 동작한다.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx

from dgraph_deploy.graphql_client import RemoteClientFactory
from dgraph_deploy.lambda_bundle import BundlerConfig, CompileResult, InMemoryFileSystem


CEREBRO_URL = "https://cerebro.test"
CEREBRO_GRAPHQL = f"{CEREBRO_URL}/graphql"

Responder = Union[Dict[str, Any], Callable[[Dict[str, Any]], Dict[str, Any]]]


@dataclass
class RecordedRequest:
    url: str
    headers: httpx.Headers
    query: str
    variables: Optional[Dict[str, Any]]


class FakeGraphQLService:
    def __init__(self) -> None:
        self.requests: List[RecordedRequest] = []
        self._routes: List[Tuple[str, str, Responder, int]] = []

    def on(self, url: str, keyword: str, response: Responder, status: int = 200) -> "FakeGraphQLService":
        self._routes.append((url, keyword, response, status))
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(
            RecordedRequest(
                url=str(request.url),
                headers=request.headers,
                query=body["query"],
                variables=body.get("variables"),
            )
        )
        for url, keyword, response, status in self._routes:
            if str(request.url) == url and keyword in body["query"]:
                payload = response(body) if callable(response) else response
                return httpx.Response(status, json=payload)
        return httpx.Response(404, json={"errors": [{"message": "no route"}]})

    def factory(self) -> RemoteClientFactory:
        return RemoteClientFactory(CEREBRO_URL, transport=httpx.MockTransport(self.handler))

    def requests_to(self, url: str) -> List[RecordedRequest]:
        return [r for r in self.requests if r.url == url]


def deployment(uid: str, name: str, url: str, jwt_token: Optional[str] = "admin-token") -> Dict[str, Any]:
    return {
        "uid": uid,
        "name": name,
        "zone": "us-west-2",
        "url": url,
        "owner": "ops@example.com",
        "jwtToken": jwt_token,
        "deploymentMode": "graphql",
        "deploymentType": "free",
        "lambdaScript": "",
    }


class FakeCompiler:
    def __init__(self, output: bytes = b"export default {};\n", errors: Tuple[str, ...] = ()) -> None:
        self.output = output
        self.errors = errors
        self.calls: List[Tuple[BundlerConfig, bool, InMemoryFileSystem]] = []

    async def run(self, config: BundlerConfig, output_fs: InMemoryFileSystem, *, production: bool) -> CompileResult:
        self.calls.append((config, production, output_fs))
        if self.errors:
            return CompileResult(errors=self.errors)
        output_fs.write_file(config.output_file, self.output)
        return CompileResult()
