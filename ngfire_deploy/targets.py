"""
targets
-------

angular.json / .firebaserc 에서 배포에 필요한 값을 결정한다.

- 클라이언트/서버 번들 outputPath (BuildOutputPaths)
- hosting target 이 연결된 Firebase 프로젝트 이름

값이 없으면 ConfigurationError 로 즉시 중단한다. 기본값으로 대체하지 않는다.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .config import load_firebaserc
from .errors import ConfigurationError
from .logging_utils import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class BuildOutputPaths:
    # 워크스페이스 루트 기준 상대 경로
    static_output_path: str
    server_output_path: str


def _option(project_targets: Mapping[str, Any], target: str, key: str) -> Any:
    options = (project_targets.get(target) or {}).get("options") or {}
    return options.get(key)


def get_server_options(project_targets: Mapping[str, Any]) -> Mapping[str, Any]:
    return (project_targets.get("server") or {}).get("options") or {}


def _normalize_output_path(raw: Any, field: str, workspace_root: Optional[str]) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise ConfigurationError(
            f"Angular 프로젝트의 출력 경로({field})를 angular.json 에서 읽을 수 없습니다."
        )

    path = raw.strip()
    if os.path.isabs(path):
        if not workspace_root:
            raise ConfigurationError(f"{field} 가 절대 경로입니다: {path}")
        path = os.path.relpath(path, workspace_root)

    path = os.path.normpath(path)
    if path == ".." or path.startswith(".." + os.sep):
        raise ConfigurationError(f"{field} 가 워크스페이스 밖을 가리킵니다: {raw}")

    # dist/browser → dist/dist/browser 처럼 상위 디렉토리 이름을 붙여 한 단계 내린다.
    # 상위 디렉토리가 없으면 이동 전후 경로가 같아진다.
    if not os.path.dirname(path):
        raise ConfigurationError(
            f"{field} 에 상위 디렉토리가 없습니다 (예: dist/{path} 형태여야 합니다): {raw}"
        )
    return path


def resolve_output_paths(project_targets: Mapping[str, Any],
                         workspace_root: Optional[str] = None) -> BuildOutputPaths:
    """
    build.options.outputPath / server.options.outputPath 를 읽어 BuildOutputPaths 를 만든다.
    """
    static_out = _normalize_output_path(
        _option(project_targets, "build", "outputPath"),
        "architect.build.options.outputPath",
        workspace_root,
    )
    server_out = _normalize_output_path(
        _option(project_targets, "server", "outputPath"),
        "architect.server.options.outputPath",
        workspace_root,
    )
    logger.debug("출력 경로: browser=%s server=%s", static_out, server_out)
    return BuildOutputPaths(static_output_path=static_out, server_output_path=server_out)


def find_firebase_project(firebaserc: Mapping[str, Any], target: str) -> str:
    """
    .firebaserc 의 targets 를 순서대로 훑어서 hosting target 에 `target` 이 있는
    첫 번째 프로젝트 이름을 반환한다.

    {"targets": {"projA": {"hosting": {"prod": [...]}}}} 에서 target="prod" → "projA"
    """
    targets = firebaserc.get("targets") or {}
    for project, project_targets in targets.items():
        hosting = (project_targets or {}).get("hosting") or {}
        if target in hosting:
            return project
    raise ConfigurationError(
        f".firebaserc 에서 hosting target '{target}' 에 연결된 Firebase 프로젝트를 찾을 수 없습니다."
    )


def get_firebase_project_name(workspace_root: str, target: str) -> str:
    project = find_firebase_project(load_firebaserc(workspace_root), target)
    logger.info("Firebase 프로젝트: %s (hosting target=%s)", project, target)
    return project
