"""
manifest
--------

Functions 패키지의 package.json (dependencies / devDependencies) 을 만든다.

의존성 맵은 병합 단계(MergeStep)들의 목록을 왼쪽부터 순서대로 접어서(fold) 계산한다.
각 단계는 새 DependencySet 을 반환하며, 뒤 단계의 값이 앞 단계의 값을 덮어쓴다.

    BASELINE
      -> resolve_installed_versions(lookup)     # "latest" 를 설치된 버전으로 교체
      -> merge_host_dependencies(host)          # BundleAll: 앱 package.json 의 dependencies 전체
         또는 resolve_external_dependencies()   # ExplicitAllowList: 허용 목록만 설치 버전으로
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from functools import reduce
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Union

from .errors import ConfigurationError
from .logging_utils import get_logger
from .templates import render_package_json
from .versions import VersionLookup


logger = get_logger(__name__)


def _frozen(mapping: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class DependencySet:
    dependencies: Mapping[str, str] = field(default_factory=dict)
    dev_dependencies: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "dependencies", _frozen(self.dependencies))
        object.__setattr__(self, "dev_dependencies", _frozen(self.dev_dependencies))

    def with_dependencies(self, updates: Mapping[str, str]) -> "DependencySet":
        return DependencySet({**self.dependencies, **updates}, self.dev_dependencies)

    def with_dev_dependencies(self, updates: Mapping[str, str]) -> "DependencySet":
        return DependencySet(self.dependencies, {**self.dev_dependencies, **updates})


BASELINE = DependencySet(
    dependencies={
        "firebase-admin": "latest",
        "firebase-functions": "latest",
    },
    dev_dependencies={
        "firebase-functions-test": "latest",
    },
)


MergeStep = Callable[[DependencySet], DependencySet]


def _resolved(names: Iterable[str], lookup: VersionLookup) -> dict[str, str]:
    found: dict[str, str] = {}
    for name in names:
        version = lookup(name)
        if version:
            found[name] = version
    return found


def resolve_installed_versions(lookup: VersionLookup) -> MergeStep:
    """기존 키마다 설치된 버전을 조회해서, 찾은 것만 덮어쓴다."""

    def step(deps: DependencySet) -> DependencySet:
        return (
            deps.with_dependencies(_resolved(deps.dependencies, lookup))
            .with_dev_dependencies(_resolved(deps.dev_dependencies, lookup))
        )

    return step


def merge_host_dependencies(host_dependencies: Optional[Mapping[str, str]]) -> MergeStep:
    """앱 package.json 의 dependencies 를 전부 병합한다. 키가 겹치면 앱 쪽 버전이 이긴다."""

    def step(deps: DependencySet) -> DependencySet:
        if host_dependencies is None:
            # TODO: package.json 이 없을 때 실패로 볼지 결정이 필요하다. 지금은 건너뛴다.
            logger.debug("워크스페이스 package.json 이 없어 앱 의존성 병합을 건너뜁니다.")
            return deps
        return deps.with_dependencies(host_dependencies)

    return step


def resolve_external_dependencies(names: Sequence[str], lookup: VersionLookup) -> MergeStep:
    """externalDependencies 에 있는 패키지만 설치된 버전으로 추가한다."""

    def step(deps: DependencySet) -> DependencySet:
        return deps.with_dependencies(_resolved(names, lookup))

    return step


def synthesize_dependencies(steps: Iterable[MergeStep],
                            initial: DependencySet = BASELINE) -> DependencySet:
    return reduce(lambda deps, step: step(deps), steps, initial)


# -----------------------------
# 의존성 정책 (bundleDependencies)
# -----------------------------
@dataclass(frozen=True)
class BundleAll:
    """서버 번들이 의존성을 번들링하지 않음 → 앱의 dependencies 전체를 설치해야 한다."""


@dataclass(frozen=True)
class ExplicitAllowList:
    names: tuple[str, ...] = ()


ExternalDependencyPolicy = Union[BundleAll, ExplicitAllowList]


def select_policy(server_options: Mapping[str, Any]) -> ExternalDependencyPolicy:
    if server_options.get("bundleDependencies") is not True:
        return BundleAll()
    externals = server_options.get("externalDependencies") or []
    return ExplicitAllowList(names=tuple(str(name) for name in externals))


def read_host_dependencies(workspace_root: str) -> Optional[Mapping[str, str]]:
    """
    워크스페이스 루트의 package.json 에서 dependencies 를 읽는다.
    파일이 없으면 None (병합 생략), dependencies 키가 없으면 빈 dict.
    """
    path = os.path.join(workspace_root, "package.json")
    if not os.path.exists(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"package.json 을 읽을 수 없습니다: {path} ({e})") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"package.json 의 최상위 값이 객체가 아닙니다: {path}")

    dependencies = data.get("dependencies") or {}
    if not isinstance(dependencies, dict):
        raise ConfigurationError(f"package.json 의 dependencies 가 객체가 아닙니다: {path}")
    invalid = sorted(name for name, version in dependencies.items() if not isinstance(version, str))
    if invalid:
        raise ConfigurationError(
            f"package.json dependencies 의 버전 값이 문자열이 아닙니다: {', '.join(invalid)}"
        )
    return dict(dependencies)


def policy_step(policy: ExternalDependencyPolicy,
                lookup: VersionLookup,
                host_dependencies: Optional[Mapping[str, str]]) -> MergeStep:
    if isinstance(policy, ExplicitAllowList):
        return resolve_external_dependencies(policy.names, lookup)
    return merge_host_dependencies(host_dependencies)


def build_dependency_set(policy: ExternalDependencyPolicy,
                         lookup: VersionLookup,
                         host_dependencies: Optional[Mapping[str, str]] = None) -> DependencySet:
    logger.info("의존성 정책: %s", policy)
    return synthesize_dependencies(
        [
            resolve_installed_versions(lookup),
            policy_step(policy, lookup, host_dependencies),
        ]
    )


def build_package_json(deps: DependencySet) -> str:
    return render_package_json(deps.dependencies, deps.dev_dependencies)
