"""
relocator
---------

빌드 산출물 디렉토리를 Functions 런타임 구조에 맞게 옮긴다.

서버 번들은 실행 시 `$cwd/<browser outputPath>` 에 클라이언트 번들이 있다고 가정한다.
Firebase Function 은 dirname(server outputPath) 를 패키지 루트(cwd)로 실행하므로,
dist/app/browser 를 dist/app/dist/app/browser 로 옮겨야 같은 상대 경로가 유지된다.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Tuple

from .fs_host import FSHost
from .logging_utils import get_logger
from .targets import BuildOutputPaths


logger = get_logger(__name__)

INDEX_HTML = "index.html"
ORIGINAL_INDEX_HTML = "index.original.html"


def relocated_path(path: str) -> str:
    """dist/app/browser -> dist/app/dist/app/browser"""
    return os.path.join(os.path.dirname(path), path)


@dataclass(frozen=True)
class RelocationPlan:
    # (src, dest) 순서대로 적용: 클라이언트 번들, 서버 번들
    moves: Tuple[Tuple[str, str], ...]

    @property
    def client_path(self) -> str:
        return self.moves[0][1]

    @property
    def server_path(self) -> str:
        return self.moves[1][1]


def plan_relocation(paths: BuildOutputPaths) -> RelocationPlan:
    return RelocationPlan(
        moves=(
            (paths.static_output_path, relocated_path(paths.static_output_path)),
            (paths.server_output_path, relocated_path(paths.server_output_path)),
        )
    )


def relocate(paths: BuildOutputPaths, fs_host: FSHost) -> RelocationPlan:
    """
    클라이언트 번들과 서버 번들을 한 단계 아래로 옮긴다.
    실패 시 FilesystemError 가 그대로 전파되며, 먼저 끝난 이동은 되돌리지 않는다.
    """
    plan = plan_relocation(paths)
    for src, dest in plan.moves:
        logger.info("디렉토리 재배치: %s -> %s", src, dest)
        fs_host.move(src, dest)
    return plan


def rename_index_html(client_path: str, fs_host: FSHost) -> str:
    """
    클라이언트 번들의 index.html 을 index.original.html 로 바꾼다.
    원래 이름은 SSR 핸들러가 렌더링한 결과를 내보낼 때 사용한다.
    """
    dest = os.path.join(client_path, ORIGINAL_INDEX_HTML)
    fs_host.rename(os.path.join(client_path, INDEX_HTML), dest)
    return dest
