"""
errors
------

배포 파이프라인 전 단계에서 공통으로 사용하는 예외 계층.

원격 서비스가 돌려준 에러 메시지는 요약하거나 합치지 않고
메시지 단위로 그대로 보존한다.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple, Type, TYPE_CHECKING

if TYPE_CHECKING:
    from .graphql_client import GraphQLResponse


class DeployError(Exception):
    """dgraph_deploy 가 던지는 모든 예외의 기반 클래스."""


class TransportError(DeployError):
    """네트워크 오류, 서비스 접근 불가, 형식이 깨진 응답."""


class RemoteError(DeployError):
    """
    정상적인 형식의 응답에 하나 이상의 서비스 에러가 포함된 경우.

    messages 에는 원격이 보고한 메시지가 순서대로 하나씩 들어 있다.
    메시지가 여러 개일 때 str() 은 개수와 목록을 한 줄로 요약할 뿐이므로,
    메시지별로 보고하려면 split() 을 사용한다.
    """

    def __init__(self, messages: Iterable[str]) -> None:
        self.messages: Tuple[str, ...] = tuple(messages)
        super().__init__(*self.messages)

    def __str__(self) -> str:
        if len(self.messages) == 1:
            return self.messages[0]
        return f"{len(self.messages)} remote errors: {list(self.messages)!r}"

    def split(self) -> List["RemoteError"]:
        """메시지 하나당 같은 타입의 예외 하나로 분리한다."""
        return [type(self)([m]) for m in self.messages]


class RemoteAuthError(RemoteError):
    """디렉토리 서비스가 로그인을 거부함."""


class RemoteRejectedError(RemoteError):
    """조회/뮤테이션이 서비스 레벨에서 거부됨."""


class NotFoundError(DeployError):
    """디렉토리 목록에 해당 이름의 백엔드가 없음."""


class SchemaReadError(DeployError, OSError):
    """로컬 스키마 파일을 읽을 수 없음."""


class BuildError(DeployError):
    """번들러가 빌드 실패를 보고함. diagnostics 에 번들러 출력이 그대로 담긴다."""

    def __init__(self, message: str, diagnostics: Sequence[str] = ()) -> None:
        self.diagnostics: Tuple[str, ...] = tuple(diagnostics)
        detail = ""
        if self.diagnostics:
            detail = "\n" + "\n".join(self.diagnostics)
        super().__init__(message + detail)


def raise_for_graphql_errors(
    response: "GraphQLResponse",
    error_cls: Type[RemoteError] = RemoteRejectedError,
) -> dict:
    """
    GraphQL 응답에 에러가 있으면 error_cls 로 변환해서 던지고,
    없으면 data 를 돌려준다.

    모든 fetch/publish 연산이 이 함수 하나로 에러를 정규화한다.
    """
    if response.errors:
        raise error_cls(err.message for err in response.errors)
    if response.data is None:
        raise TransportError("응답에 data 가 없습니다.")
    return response.data
