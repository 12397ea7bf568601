"""
builds
------

재패키징 전에 실행하는 Angular 빌드 target 목록과 실행기.
빌드 자체는 Angular CLI(`ng run`)에 맡긴다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List

from .logging_utils import get_logger
from .subprocess_utils import run_command, split_command


logger = get_logger(__name__)


@dataclass(frozen=True)
class BuildTarget:
    name: str
    options: Dict[str, Any] = field(default_factory=dict)


TargetRunner = Callable[[BuildTarget], None]


def default_build_targets(project: str, prerender: bool = False) -> List[BuildTarget]:
    if prerender:
        return [BuildTarget(name=f"{project}:prerender")]
    return [
        BuildTarget(name=f"{project}:build:production"),
        BuildTarget(
            name=f"{project}:server:production",
            options={"bundleDependencies": True},
        ),
    ]


def _format_option(key: str, value: Any) -> str:
    if isinstance(value, bool):
        value = "true" if value else "false"
    return f"--{key}={value}"


class NgTargetRunner:
    """`ng run <target> --key=value ...` 를 워크스페이스 루트에서 실행한다."""

    def __init__(self, ng_command: str = "npx ng", cwd: str = ".") -> None:
        self.ng_command = ng_command
        self.cwd = cwd

    def command_for(self, target: BuildTarget) -> List[str]:
        return [
            *split_command(self.ng_command),
            "run",
            target.name,
            *(_format_option(k, v) for k, v in target.options.items()),
        ]

    def __call__(self, target: BuildTarget) -> None:
        run_command(self.command_for(target), cwd=self.cwd, stream_output=True)


def run_build_targets(targets: Iterable[BuildTarget], runner: TargetRunner) -> None:
    """target 을 순서대로 실행한다. 실패하면 RuntimeError 가 그대로 전파된다."""
    for target in targets:
        logger.info("빌드 단계 실행: %s", target.name)
        runner(target)
        logger.info("빌드 단계 완료: %s", target.name)
