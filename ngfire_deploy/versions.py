"""
versions
--------

설치된 npm 패키지 버전 조회와 로컬 Node 버전 점검.

버전 조회는 `name -> Optional[version]` 형태의 callable(VersionLookup)로 추상화한다.
운영에서는 NpmVersionLookup(`npm list <name>`)을, 테스트에서는 dict.get 등을 주입한다.
"""

from __future__ import annotations

import re
from typing import Callable, Optional, Tuple

from .logging_utils import get_logger
from .subprocess_utils import run_command, split_command


logger = get_logger(__name__)


VersionLookup = Callable[[str], Optional[str]]


def parse_npm_list_version(output: str, name: str) -> Optional[str]:
    """
    `npm list <name>` 트리 출력에서 첫 번째 `<name>@<version>` 의 version 을 꺼낸다.
    첫 줄은 워크스페이스 자신(루트)이므로 보지 않는다.

        my-app@0.0.0 /work/my-app
        └── firebase-admin@11.5.0
    """
    _, _, tree = output.partition("\n")
    match = re.search(rf"\s{re.escape(name)}@([^\s]+)", tree)
    if not match:
        return None
    return match.group(1)


class NpmVersionLookup:
    """
    `npm list <name>` 을 동기 실행해 설치된 버전을 찾는다.

    npm 은 패키지가 없을 때뿐 아니라 트리에 invalid/extraneous 항목이 있을 때도 exit 1 을 낸다.
    그래서 exit code 는 보지 않고 출력에서 버전을 찾는다. npm 실행 자체가 안 되면 None.
    timeout 은 걸지 않는다.
    """

    def __init__(self, cwd: str = ".", npm_command: str = "npm") -> None:
        self.cwd = cwd
        self.npm_command = npm_command

    def __call__(self, name: str) -> Optional[str]:
        cmd = [*split_command(self.npm_command), "list", name]
        try:
            result = run_command(cmd, cwd=self.cwd, check=False)
        except RuntimeError as e:
            logger.debug("설치된 버전을 찾지 못했습니다: %s (%s)", name, e)
            return None
        version = parse_npm_list_version(result.stdout, name)
        logger.debug("설치된 버전: %s=%s", name, version)
        return version


def version_range(major: int) -> str:
    return f"^{major}.0.0"


def parse_version(raw: str) -> Tuple[int, int, int]:
    """'v20.11.1' / '20.11.1' / '20.11.1-pre' -> (20, 11, 1)"""
    match = re.match(r"^\s*v?(\d+)(?:\.(\d+))?(?:\.(\d+))?", raw or "")
    if not match:
        raise ValueError(f"버전 문자열을 해석할 수 없습니다: {raw!r}")
    major, minor, patch = (int(g) if g is not None else 0 for g in match.groups())
    return major, minor, patch


def satisfies(version: str, range_: str) -> bool:
    """
    caret 범위(^X.Y.Z)만 지원한다.
    X > 0 이면 X 가 같고 X.Y.Z 이상이면 만족한다.
    """
    if not range_.startswith("^"):
        raise ValueError(f"지원하지 않는 버전 범위입니다: {range_!r}")
    low = parse_version(range_[1:])
    current = parse_version(version)
    if current < low:
        return False
    if low[0] > 0:
        return current[0] == low[0]
    if low[1] > 0:
        return current[:2] == low[:2]
    return current == low


def get_node_version(node_command: str = "node") -> Optional[str]:
    try:
        result = run_command([*split_command(node_command), "--version"])
    except RuntimeError as e:
        logger.debug("Node 버전 조회 실패: %s", e)
        return None
    return result.stdout.strip() or None


def check_node_version(required_major: int, node_command: str = "node",
                       current: Optional[str] = None) -> bool:
    """
    로컬 Node 버전이 Functions 런타임 버전 범위에 맞는지 확인한다.
    맞지 않아도 재패키징은 가능하므로 경고 로그만 남기고 False 를 반환한다.
    """
    current = current if current is not None else get_node_version(node_command)
    required = version_range(required_major)

    if current is None:
        logger.warning(
            "Node.js 버전을 확인할 수 없습니다. Firebase Functions 런타임은 Node %s 입니다.",
            required_major,
        )
        return False

    try:
        ok = satisfies(current, required)
    except ValueError:
        ok = False

    if not ok:
        logger.warning(
            "로컬 Node.js 버전(%s)이 Firebase Functions 런타임(%s)과 맞지 않습니다.",
            current,
            required_major,
        )
    return ok
