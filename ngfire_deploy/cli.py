import os
import sys
from typing import Optional

import click

from .config import BuilderConfig, load_env_files
from .errors import ConfigurationError
from .logging_utils import get_logger, setup_logging
from .pipeline import build_to_deploy_function, plan_deploy_function
from .targets import get_firebase_project_name


logger = get_logger(__name__)


@click.group()
@click.option(
    "-C",
    "--chdir",
    "chdir",
    type=click.Path(file_okay=False, dir_okay=True, exists=True),
    default=".",
    help="Angular 워크스페이스 루트 (기본: 현재 디렉토리)",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="로그 레벨을 DEBUG로 올립니다.",
)
@click.option("-q", "--quiet", is_flag=True, help="경고/오류 로그만 출력합니다.")
@click.pass_context
def main(ctx: click.Context, chdir: str, verbose: int, quiet: bool) -> None:
    """Angular SSR 빌드 결과를 Firebase Functions 패키지로 재구성하는 CLI"""
    setup_logging(verbose, quiet=quiet)
    ctx.ensure_object(dict)
    ctx.obj["chdir"] = os.path.abspath(chdir)
    ctx.obj["verbose"] = verbose


def _load_config_from_ctx(
    ctx: click.Context,
    project: Optional[str] = None,
    target: Optional[str] = None,
) -> BuilderConfig:
    base_dir: str = ctx.obj["chdir"]
    load_env_files(base_dir)
    cfg = BuilderConfig.from_env(base_dir, project=project, firebase_target=target)
    logger.debug("Config loaded: %s", cfg)
    return cfg


_project_option = click.option(
    "-p", "--project", "project", type=str, default=None,
    help="angular.json 의 프로젝트 이름 (기본: ANGULAR_PROJECT)",
)
_target_option = click.option(
    "-t", "--target", "target", type=str, default=None,
    help=".firebaserc 의 hosting target 이름 (기본: FIREBASE_HOSTING_TARGET 또는 프로젝트 이름)",
)


@main.command()
@_project_option
@_target_option
@click.option("--prerender", is_flag=True, help="build/server 대신 prerender target 을 실행합니다.")
@click.option("--skip-build", is_flag=True, help="Angular 빌드 없이 기존 dist 만 재구성합니다.")
@click.pass_context
def build(ctx: click.Context, project: Optional[str], target: Optional[str],
          prerender: bool, skip_build: bool) -> None:
    """Angular 빌드 후 dist 를 Functions 배포용 구조로 바꾼다"""
    try:
        cfg = _load_config_from_ctx(ctx, project, target)
    except ConfigurationError as e:
        click.echo(f"[ERROR] 설정 로드 실패: {e}", err=True)
        sys.exit(1)

    if prerender:
        cfg.prerender = True
    if skip_build:
        cfg.skip_build = True

    try:
        summary, success = build_to_deploy_function(cfg)
    except Exception as e:  # noqa: BLE001
        logger.exception("Functions 패키지 생성 중 오류 발생")
        click.echo(f"[ERROR] 빌드 실패: {e}", err=True)
        sys.exit(1)

    click.echo(summary)

    if not success:
        sys.exit(1)


@main.command()
@_project_option
@click.pass_context
def plan(ctx: click.Context, project: Optional[str]) -> None:
    """파일을 바꾸지 않고 재배치 계획과 package.json 의존성을 출력"""
    try:
        cfg = _load_config_from_ctx(ctx, project)
        report = plan_deploy_function(cfg)
    except ConfigurationError as e:
        click.echo(f"[ERROR] {e}", err=True)
        sys.exit(1)

    click.echo(report)


@main.command(name="firebase-project")
@_project_option
@_target_option
@click.pass_context
def firebase_project(ctx: click.Context, project: Optional[str], target: Optional[str]) -> None:
    """hosting target 이 연결된 Firebase 프로젝트 이름을 출력"""
    try:
        cfg = _load_config_from_ctx(ctx, project, target)
        name = get_firebase_project_name(cfg.workspace_root, cfg.firebase_target or cfg.project)
    except ConfigurationError as e:
        click.echo(f"[ERROR] {e}", err=True)
        sys.exit(1)

    click.echo(name)
