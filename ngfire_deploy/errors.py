"""
errors
------

파이프라인 전역에서 사용하는 예외 타입.

- ConfigurationError: 설정 누락/오류. 파일시스템 변경 전에 발생한다.
- FilesystemError: 이동/쓰기/이름변경 실패. 일부 변경이 이미 적용됐을 수 있다(롤백 없음).

로컬 Node 버전이 Functions 런타임과 다른 경우는 예외가 아니라 경고 로그로만 남긴다 (versions.check_node_version).
"""

from __future__ import annotations


class NgFireError(Exception):
    """ngfire_deploy 예외의 공통 부모."""


class ConfigurationError(NgFireError):
    pass


class FilesystemError(NgFireError):
    pass
