from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError


ENV_FILES_DEFAULT_ORDER = [".env", ".env.ngfire"]

ANGULAR_WORKSPACE_FILE = "angular.json"
FIREBASERC_FILE = ".firebaserc"


def load_env_files(base_dir: str = ".",
                   files: Optional[List[str]] = None) -> None:
    """
    주어진 디렉토리에서 .env 계열 파일을 순서대로 로드한다.
    후순위 파일이 같은 키를 덮어쓴다.
    """
    order = files or ENV_FILES_DEFAULT_ORDER
    for name in order:
        path = os.path.join(base_dir, name)
        if os.path.exists(path):
            load_dotenv(path, override=True)


def _get_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "y"}


@dataclass
class BuilderConfig:
    workspace_root: str
    project: str

    # .firebaserc 에서 찾을 hosting target 이름 (기본: Angular 프로젝트 이름)
    firebase_target: Optional[str] = None

    prerender: bool = False
    skip_build: bool = False

    # 외부 도구
    npm_command: str = "npm"
    node_command: str = "node"
    ng_command: str = "npx ng"

    def __post_init__(self) -> None:
        if not self.firebase_target:
            self.firebase_target = self.project

    @classmethod
    def from_env(cls, workspace_root: str = ".",
                 project: Optional[str] = None,
                 firebase_target: Optional[str] = None) -> "BuilderConfig":
        """
        환경변수에서 설정을 만든다. project / firebase_target 인자(명령행 옵션)가 있으면
        해당 환경변수보다 우선한다.
        """
        missing: List[str] = []

        def req(name: str) -> str:
            val = os.getenv(name)
            if not val:
                missing.append(name)
            return val or ""

        cfg = cls(
            workspace_root=os.path.abspath(workspace_root),
            project=project or req("ANGULAR_PROJECT"),
            firebase_target=firebase_target or os.getenv("FIREBASE_HOSTING_TARGET"),
            prerender=_get_bool("PRERENDER", False),
            skip_build=_get_bool("SKIP_BUILD", False),
            npm_command=os.getenv("NPM_COMMAND", "npm"),
            node_command=os.getenv("NODE_COMMAND", "node"),
            ng_command=os.getenv("NG_COMMAND", "npx ng"),
        )

        if missing:
            raise ConfigurationError(
                "필수 환경변수가 누락되었습니다: " + ", ".join(sorted(set(missing)))
            )

        return cfg


def _read_json(path: str, label: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        raise ConfigurationError(f"{label} 파일을 찾을 수 없습니다: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"{label} 파일을 읽을 수 없습니다: {path} ({e})") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"{label} 의 최상위 값이 객체가 아닙니다: {path}")
    return data


def load_workspace(workspace_root: str) -> Dict[str, Any]:
    """angular.json 을 읽어 dict 로 반환한다."""
    return _read_json(os.path.join(workspace_root, ANGULAR_WORKSPACE_FILE), ANGULAR_WORKSPACE_FILE)


def load_firebaserc(workspace_root: str) -> Dict[str, Any]:
    return _read_json(os.path.join(workspace_root, FIREBASERC_FILE), FIREBASERC_FILE)


def get_project_targets(workspace: Dict[str, Any], project: str) -> Dict[str, Any]:
    """
    angular.json 에서 프로젝트의 target 설정(architect 또는 targets)을 꺼낸다.

    반환값은 {"build": {"options": {...}}, "server": {...}, ...} 형태.
    """
    projects = workspace.get("projects") or {}
    if project not in projects:
        raise ConfigurationError(
            f"angular.json 에 '{project}' 프로젝트가 없습니다. "
            f"(정의된 프로젝트: {', '.join(sorted(projects)) or '(none)'})"
        )
    entry = projects[project] or {}
    return entry.get("architect") or entry.get("targets") or {}
