"""
backends
--------

Cerebro 의 deployments 목록에서 이름으로 대상 백엔드를 찾는다.

같은 이름이 여러 개면 목록 순서상 첫 번째를 쓴다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from .errors import NotFoundError, RemoteRejectedError, TransportError, raise_for_graphql_errors
from .graphql_client import GraphQLClient
from .logging_utils import get_logger


logger = get_logger(__name__)

DEPLOYMENTS_QUERY = """
{
    deployments {
        uid
        name
        zone
        url
        owner
        jwtToken
        deploymentMode
        deploymentType
        lambdaScript
    }
}
"""


@dataclass(frozen=True)
class BackendDescriptor:
    uid: str
    name: str
    url: str
    jwt_token: Optional[str] = field(default=None, repr=False)
    owner: Optional[str] = None
    zone: Optional[str] = None
    deployment_mode: Optional[str] = None
    deployment_type: Optional[str] = None
    lambda_script: Optional[str] = field(default=None, repr=False)

    @classmethod
    def from_payload(cls, raw: Mapping[str, Any]) -> "BackendDescriptor":
        try:
            uid = raw["uid"]
            name = raw["name"]
            url = raw["url"]
        except (KeyError, TypeError) as e:
            raise TransportError(f"deployments 항목 형식이 올바르지 않습니다: {e}") from e
        return cls(
            uid=str(uid),
            name=str(name),
            url=str(url),
            jwt_token=raw.get("jwtToken") or None,
            owner=raw.get("owner"),
            zone=raw.get("zone"),
            deployment_mode=raw.get("deploymentMode"),
            deployment_type=raw.get("deploymentType"),
            lambda_script=raw.get("lambdaScript"),
        )


async def list_backends(directory: GraphQLClient) -> List[BackendDescriptor]:
    """현재 인증된 계정이 볼 수 있는 백엔드 전체 목록. 캐시하지 않는다."""
    response = await directory.request(DEPLOYMENTS_QUERY)
    data = raise_for_graphql_errors(response, RemoteRejectedError)
    deployments = data.get("deployments")
    if not isinstance(deployments, list):
        raise TransportError("deployments 응답이 목록이 아닙니다.")
    return [BackendDescriptor.from_payload(d) for d in deployments]


async def resolve_backend(directory: GraphQLClient, name: str) -> BackendDescriptor:
    backends = await list_backends(directory)
    matches = [b for b in backends if b.name == name]
    if not matches:
        raise NotFoundError(f"백엔드를 찾을 수 없습니다: {name!r}")

    if len(matches) > 1:
        logger.warning(
            "같은 이름의 백엔드가 %d개 있습니다. 첫 번째(uid=%s)를 사용합니다: %s",
            len(matches),
            matches[0].uid,
            name,
        )
    backend = matches[0]
    logger.info("대상 백엔드: %s (uid=%s, url=%s)", backend.name, backend.uid, backend.url)
    return backend
