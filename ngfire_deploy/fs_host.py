"""
fs_host
-------

파이프라인이 사용하는 파일시스템 연산(move / write_text / rename) 인터페이스와
실제 디스크 구현.

경로는 모두 워크스페이스 루트 기준 상대 경로로 주고받는다.
테스트에서는 같은 메서드를 가진 가짜 객체를 주입한다.
"""

from __future__ import annotations

import os
import shutil
from typing import Protocol

from .errors import FilesystemError
from .logging_utils import get_logger


logger = get_logger(__name__)


class FSHost(Protocol):
    def move(self, src: str, dest: str) -> None: ...

    def write_text(self, path: str, content: str) -> None: ...

    def rename(self, src: str, dest: str) -> None: ...


class LocalFSHost:
    """
    워크스페이스 루트(root) 아래의 실제 파일시스템에 연산을 적용한다.

    move 는 복사 후 원본 삭제 방식이라 파일시스템이 달라도 동작한다.
    중간에 실패하면 일부만 적용된 상태로 남는다 (롤백 없음).
    """

    def __init__(self, root: str = ".") -> None:
        self.root = os.path.abspath(root)

    def _abs(self, path: str) -> str:
        return os.path.join(self.root, path)

    def move(self, src: str, dest: str) -> None:
        abs_src, abs_dest = self._abs(src), self._abs(dest)
        logger.debug("이동: %s -> %s", abs_src, abs_dest)
        if not os.path.isdir(abs_src):
            raise FilesystemError(f"이동할 디렉토리가 없습니다: {abs_src}")
        if os.path.exists(abs_dest):
            raise FilesystemError(
                f"이동 대상이 이미 존재합니다 (이미 재배치된 빌드일 수 있습니다): {abs_dest}"
            )
        try:
            shutil.copytree(abs_src, abs_dest)
            shutil.rmtree(abs_src)
        except OSError as e:
            raise FilesystemError(f"디렉토리 이동 실패: {src} -> {dest} ({e})") from e

    def write_text(self, path: str, content: str) -> None:
        abs_path = self._abs(path)
        logger.debug("파일 쓰기: %s", abs_path)
        try:
            os.makedirs(os.path.dirname(abs_path), exist_ok=True)
            with open(abs_path, "w", encoding="utf-8") as f:
                f.write(content)
        except OSError as e:
            raise FilesystemError(f"파일 쓰기 실패: {path} ({e})") from e

    def rename(self, src: str, dest: str) -> None:
        logger.debug("이름 변경: %s -> %s", src, dest)
        try:
            os.rename(self._abs(src), self._abs(dest))
        except OSError as e:
            raise FilesystemError(f"이름 변경 실패: {src} -> {dest} ({e})") from e
