"""
cerebro_auth
------------

운영자 이메일/비밀번호를 Cerebro(디렉토리 서비스) 세션 토큰으로 교환한다.
재시도하지 않는다.
"""

from __future__ import annotations

from .errors import RemoteAuthError, TransportError, raise_for_graphql_errors
from .graphql_client import RemoteClientFactory
from .logging_utils import get_logger


logger = get_logger(__name__)

LOGIN_QUERY = """
query Login($email: String!, $password: String!) {
    login(email: $email, password: $password) {
        token
    }
}
"""


async def acquire_token(factory: RemoteClientFactory, email: str, password: str) -> str:
    """
    로그인 쿼리를 보내고 서비스가 발급한 토큰을 그대로 반환한다.

    - 로그인 거부/서비스 에러: RemoteAuthError (메시지 원문 유지)
    - 연결 실패/토큰 없는 응답: TransportError
    """
    if not email or not password:
        raise ValueError("email 과 password 는 비어 있을 수 없습니다.")

    logger.info("Cerebro 로그인: %s", email)
    async with factory.directory_client() as client:
        response = await client.request(LOGIN_QUERY, {"email": email, "password": password})

    data = raise_for_graphql_errors(response, RemoteAuthError)
    login = data.get("login")
    token = login.get("token") if isinstance(login, dict) else None
    if not isinstance(token, str) or not token:
        raise TransportError("로그인 응답에 token 이 없습니다.")
    return token
