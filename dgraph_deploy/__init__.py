"""
dgraph_deploy
-------------

Dgraph Cloud 백엔드용 배포 CLI 패키지.
Cerebro 에 로그인해 대상 백엔드를 찾고, GraphQL 스키마와 람다 번들을
환경변수 기반 설정으로 한 번에 배포하는 것을 목표로 한다.
"""

__all__ = [
    "config",
    "orchestrator",
]
