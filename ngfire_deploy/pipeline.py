from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional

from .builds import NgTargetRunner, TargetRunner, default_build_targets, run_build_targets
from .config import BuilderConfig, get_project_targets, load_workspace
from .errors import ConfigurationError, FilesystemError
from .fs_host import FSHost, LocalFSHost
from .logging_utils import get_logger
from .manifest import (
    BundleAll,
    build_dependency_set,
    build_package_json,
    read_host_dependencies,
    select_policy,
)
from .relocator import plan_relocation, relocate, rename_index_html
from .targets import get_firebase_project_name, get_server_options, resolve_output_paths
from .templates import ENTRY_POINT_FILE, NODE_VERSION, PACKAGE_JSON_FILE, render_entry_point
from .versions import NpmVersionLookup, VersionLookup, check_node_version


logger = get_logger(__name__)


class PipelineState(str, Enum):
    RESOLVING = "resolving"
    RELOCATING = "relocating"
    MANIFEST_WRITING = "manifest_writing"
    ENTRY_POINT_WRITING = "entry_point_writing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineResult:
    success: bool
    state: PipelineState
    # 실패 직전에 진행 중이던 단계
    failed_at: Optional[PipelineState] = None
    error: Optional[str] = None
    written_files: List[str] = field(default_factory=list)


HostDependenciesLoader = Callable[[str], Optional[Mapping[str, str]]]


class DeployFunctionPipeline:
    """
    resolve -> relocate -> manifest -> entry point 를 순서대로 한 번씩 실행한다.

    RESOLVING 단계에서 실패하면 파일시스템은 건드리지 않는다.
    그 이후 단계의 실패는 이미 적용된 변경을 되돌리지 않는다.
    """

    def __init__(
        self,
        project_targets: Mapping[str, Any],
        *,
        workspace_root: str,
        fs_host: FSHost,
        lookup: VersionLookup,
        host_dependencies_loader: HostDependenciesLoader = read_host_dependencies,
    ) -> None:
        self.project_targets = project_targets
        self.workspace_root = workspace_root
        self.fs_host = fs_host
        self.lookup = lookup
        self.host_dependencies_loader = host_dependencies_loader
        self.state = PipelineState.RESOLVING
        self._written: List[str] = []

    def _enter(self, state: PipelineState) -> None:
        logger.debug("파이프라인 단계: %s -> %s", self.state.value, state.value)
        self.state = state

    def _write(self, path: str, content: str) -> None:
        self.fs_host.write_text(path, content)
        self._written.append(path)

    def run(self) -> PipelineResult:
        try:
            self._run()
        except (ConfigurationError, FilesystemError) as e:
            failed_at = self.state
            logger.error("Functions 패키지 생성 실패 (%s): %s", failed_at.value, e)
            self._enter(PipelineState.FAILED)
            return PipelineResult(
                success=False,
                state=self.state,
                failed_at=failed_at,
                error=str(e),
                written_files=list(self._written),
            )

        return PipelineResult(success=True, state=self.state, written_files=list(self._written))

    def _run(self) -> None:
        self._enter(PipelineState.RESOLVING)
        paths = resolve_output_paths(self.project_targets, self.workspace_root)
        policy = select_policy(get_server_options(self.project_targets))
        host_dependencies = None
        if isinstance(policy, BundleAll):
            host_dependencies = self.host_dependencies_loader(self.workspace_root)

        self._enter(PipelineState.RELOCATING)
        plan = relocate(paths, self.fs_host)
        rename_index_html(plan.client_path, self.fs_host)

        function_root = os.path.dirname(paths.server_output_path)

        self._enter(PipelineState.MANIFEST_WRITING)
        deps = build_dependency_set(policy, self.lookup, host_dependencies)
        self._write(os.path.join(function_root, PACKAGE_JSON_FILE), build_package_json(deps))

        self._enter(PipelineState.ENTRY_POINT_WRITING)
        self._write(
            os.path.join(function_root, ENTRY_POINT_FILE),
            render_entry_point(paths.server_output_path),
        )

        self._enter(PipelineState.DONE)
        logger.info("Functions 패키지 생성 완료: %s", function_root)


def _summary(cfg: BuilderConfig, firebase_project: Optional[str], result: Optional[PipelineResult],
             error: Optional[str] = None) -> str:
    lines: List[str] = []
    lines.append("# Functions package summary")
    lines.append(f"- angular project: {cfg.project}")
    lines.append(f"- firebase project: {firebase_project or '(unresolved)'}")
    lines.append(f"- hosting target: {cfg.firebase_target}")
    lines.append("")

    lines.append("## Result")
    if result is not None and result.success:
        lines.append("- status: SUCCESS")
    else:
        lines.append("- status: FAILED")
        if result is not None and result.failed_at is not None:
            lines.append(f"- failed at: {result.failed_at.value}")
        lines.append(f"- error: {error or (result.error if result else None) or '(unknown)'}")
        lines.append("- 생성된 산출물은 배포에 사용할 수 없습니다.")

    if result is not None and result.written_files:
        lines.append("")
        lines.append("## Written files")
        for path in result.written_files:
            lines.append(f"- {path}")

    return "\n".join(lines)


def build_to_deploy_function(
    cfg: BuilderConfig,
    *,
    fs_host: Optional[FSHost] = None,
    lookup: Optional[VersionLookup] = None,
    runner: Optional[TargetRunner] = None,
) -> tuple[str, bool]:
    """
    Angular 빌드(위임) 후 결과물을 Functions 패키지로 재구성한다.

    Returns:
        summary: 사람이 읽기 좋은 텍스트 요약
        success: 전체 성공 여부 (부분 성공은 없다)
    """
    check_node_version(NODE_VERSION, cfg.node_command)

    firebase_project: Optional[str] = None
    try:
        project_targets = get_project_targets(load_workspace(cfg.workspace_root), cfg.project)
        firebase_project = get_firebase_project_name(cfg.workspace_root, cfg.firebase_target or cfg.project)

        logger.info("Angular 프로젝트 빌드: %s", cfg.project)
        if cfg.skip_build:
            logger.info("SKIP_BUILD=true 이므로 Angular 빌드를 건너뜁니다.")
        else:
            run_build_targets(
                default_build_targets(cfg.project, cfg.prerender),
                runner or NgTargetRunner(cfg.ng_command, cwd=cfg.workspace_root),
            )
    except Exception as e:  # noqa: BLE001
        logger.exception("빌드 준비 중 오류 발생")
        return _summary(cfg, firebase_project, None, error=str(e)), False

    pipeline = DeployFunctionPipeline(
        project_targets,
        workspace_root=cfg.workspace_root,
        fs_host=fs_host or LocalFSHost(cfg.workspace_root),
        lookup=lookup or NpmVersionLookup(cfg.workspace_root, cfg.npm_command),
    )
    result = pipeline.run()
    return _summary(cfg, firebase_project, result), result.success


def plan_deploy_function(cfg: BuilderConfig, lookup: Optional[VersionLookup] = None) -> str:
    """
    실제 파일 이동/쓰기 없이 재배치 계획과 생성될 package.json 을 요약한다.
    """
    project_targets = get_project_targets(load_workspace(cfg.workspace_root), cfg.project)
    paths = resolve_output_paths(project_targets, cfg.workspace_root)
    plan = plan_relocation(paths)
    policy = select_policy(get_server_options(project_targets))
    host_dependencies = (
        read_host_dependencies(cfg.workspace_root) if isinstance(policy, BundleAll) else None
    )
    deps = build_dependency_set(
        policy,
        lookup or NpmVersionLookup(cfg.workspace_root, cfg.npm_command),
        host_dependencies,
    )
    function_root = os.path.dirname(paths.server_output_path)

    lines: List[str] = []
    lines.append("# Functions package plan")
    lines.append(f"- angular project: {cfg.project}")
    lines.append(f"- browser output: {paths.static_output_path}")
    lines.append(f"- server output: {paths.server_output_path}")
    lines.append("")

    lines.append("## Moves")
    for src, dest in plan.moves:
        lines.append(f"- {src} -> {dest}")
    lines.append(f"- {plan.client_path}/index.html -> index.original.html")
    lines.append("")

    lines.append("## Files")
    lines.append(f"- {os.path.join(function_root, PACKAGE_JSON_FILE)}")
    lines.append(f"- {os.path.join(function_root, ENTRY_POINT_FILE)}")
    lines.append("")

    lines.append(f"## Dependencies ({type(policy).__name__})")
    for name, version in deps.dependencies.items():
        lines.append(f"- {name}: {version}")
    lines.append("")
    lines.append("## Dev dependencies")
    for name, version in deps.dev_dependencies.items():
        lines.append(f"- {name}: {version}")

    return "\n".join(lines)
