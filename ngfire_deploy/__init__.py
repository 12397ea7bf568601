"""
ngfire_deploy
-------------

Angular 빌드 결과(클라이언트 번들 + SSR 서버 번들)를
Firebase Cloud Function 으로 배포 가능한 디렉토리 구조로 재구성하는 CLI 패키지.
실제 Angular 빌드와 Firebase 배포는 하지 않고, 이미 만들어진 산출물만 재배치한다.
"""

__all__ = [
    "config",
    "pipeline",
]
