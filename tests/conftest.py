"""
pytest 설정:

로컬 환경에 다른 버전의 ngfire_deploy 가 설치되어 있으면 site-packages 쪽이 먼저
import 되어 테스트가 깨질 수 있으므로, repo root 를 sys.path 최상단에 고정한다.
공용 fixture(가짜 FSHost, Angular 워크스페이스)도 여기 둔다.
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any

import pytest


def pytest_configure() -> None:
    repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)


class RecordingFSHost:
    """호출만 기록하는 FSHost. fail_on 에 연산 이름을 주면 해당 연산에서 실패한다."""

    def __init__(self, fail_on: str | None = None) -> None:
        self.calls: list[tuple[str, ...]] = []
        self.files: dict[str, str] = {}
        self.fail_on = fail_on

    def _maybe_fail(self, op: str) -> None:
        if self.fail_on == op:
            from ngfire_deploy.errors import FilesystemError

            raise FilesystemError(f"{op} failed")

    def move(self, src: str, dest: str) -> None:
        self.calls.append(("move", src, dest))
        self._maybe_fail("move")

    def write_text(self, path: str, content: str) -> None:
        self.calls.append(("write_text", path))
        self._maybe_fail("write_text")
        self.files[path] = content

    def rename(self, src: str, dest: str) -> None:
        self.calls.append(("rename", src, dest))
        self._maybe_fail("rename")


@pytest.fixture
def fs_host() -> RecordingFSHost:
    return RecordingFSHost()


def project_targets(
    browser: str | None = "dist/app/browser",
    server: str | None = "dist/app/server",
    **server_options: Any,
) -> dict[str, Any]:
    build_options: dict[str, Any] = {}
    if browser is not None:
        build_options["outputPath"] = browser
    srv_options: dict[str, Any] = dict(server_options)
    if server is not None:
        srv_options["outputPath"] = server
    return {
        "build": {"options": build_options},
        "server": {"options": srv_options},
    }


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """dist/app/{browser,server} 빌드 결과가 있는 최소 Angular 워크스페이스."""
    (tmp_path / "angular.json").write_text(
        json.dumps({"projects": {"app": {"architect": project_targets()}}}),
        encoding="utf-8",
    )
    (tmp_path / ".firebaserc").write_text(
        json.dumps({"targets": {"my-firebase": {"hosting": {"app": ["my-site"]}}}}),
        encoding="utf-8",
    )
    (tmp_path / "package.json").write_text(
        json.dumps({"name": "app", "dependencies": {"@angular/core": "^17.0.0", "express": "^4.18.2"}}),
        encoding="utf-8",
    )
    browser = tmp_path / "dist" / "app" / "browser"
    browser.mkdir(parents=True)
    (browser / "index.html").write_text("<app-root></app-root>", encoding="utf-8")
    (browser / "main.js").write_text("console.log('browser')", encoding="utf-8")
    server = tmp_path / "dist" / "app" / "server"
    server.mkdir(parents=True)
    (server / "main.js").write_text("exports.app = () => {}", encoding="utf-8")
    return tmp_path
