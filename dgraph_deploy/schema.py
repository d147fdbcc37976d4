"""
schema
------

GraphQL 스키마 파일에 Dgraph.Authorization 지시문을 붙여 배포용 스키마를 만들고,
백엔드의 /admin 엔드포인트에 업로드한다.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from .errors import RemoteRejectedError, SchemaReadError, raise_for_graphql_errors
from .graphql_client import GraphQLClient
from .logging_utils import get_logger


logger = get_logger(__name__)

AUTH_HEADER = "X-Auth-Token"
AUTH_NAMESPACE = "https://dgraph.io/jwt/claims"
AUTH_ALGO = "RS256"

UPDATE_SCHEMA_MUTATION = """
mutation($schema: String!) {
    updateGQLSchema(input: { set: { schema: $schema } }) {
        gqlSchema {
            schema
        }
    }
}
"""


@dataclass(frozen=True)
class AuthorizationKeys:
    verification_key: str
    client_id: str


@dataclass(frozen=True)
class SchemaArtifact:
    body: str
    directive: str

    @property
    def text(self) -> str:
        body = self.body
        if body and not body.endswith("\n"):
            body += "\n"
        return f"{body}{self.directive}\n"


def render_authorization_directive(keys: AuthorizationKeys) -> str:
    payload = {
        "VerificationKey": keys.verification_key,
        "Header": AUTH_HEADER,
        "Namespace": AUTH_NAMESPACE,
        "Algo": AUTH_ALGO,
        "Audience": [keys.client_id],
    }
    return "# Dgraph.Authorization " + json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def build_schema(path: str, keys: AuthorizationKeys) -> SchemaArtifact:
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            body = f.read()
    except OSError as e:
        raise SchemaReadError(e.errno, f"스키마 파일을 읽을 수 없습니다: {e.strerror or e}", path) from e
    except UnicodeDecodeError as e:
        raise SchemaReadError(None, f"스키마 파일이 UTF-8 이 아닙니다: {e}", path) from e

    return SchemaArtifact(body=body, directive=render_authorization_directive(keys))


async def publish_schema(admin: GraphQLClient, artifact: SchemaArtifact) -> dict:
    logger.info("스키마 업로드: %s", admin.url)
    response = await admin.request(UPDATE_SCHEMA_MUTATION, {"schema": artifact.text})
    data = raise_for_graphql_errors(response, RemoteRejectedError)
    return data.get("updateGQLSchema") or {}
