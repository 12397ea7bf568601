import json
import os

import pytest

from conftest import RecordingFSHost, project_targets
from ngfire_deploy import pipeline
from ngfire_deploy.config import BuilderConfig
from ngfire_deploy.fs_host import LocalFSHost
from ngfire_deploy.pipeline import (
    DeployFunctionPipeline,
    PipelineState,
    build_to_deploy_function,
    plan_deploy_function,
)


def _no_lookup(name: str) -> None:  # noqa: ARG001
    return None


def _pipeline(targets, fs_host, lookup=_no_lookup, host=None):  # noqa: ANN001
    return DeployFunctionPipeline(
        targets,
        workspace_root="/work",
        fs_host=fs_host,
        lookup=lookup,
        host_dependencies_loader=lambda root: host,
    )


def test_pipeline_operation_order(fs_host: RecordingFSHost) -> None:
    result = _pipeline(project_targets(), fs_host).run()

    assert result.success
    assert result.state is PipelineState.DONE
    client = os.path.join("dist/app", "dist/app/browser")
    assert fs_host.calls == [
        ("move", "dist/app/browser", client),
        ("move", "dist/app/server", os.path.join("dist/app", "dist/app/server")),
        ("rename", os.path.join(client, "index.html"), os.path.join(client, "index.original.html")),
        ("write_text", os.path.join("dist/app", "package.json")),
        ("write_text", os.path.join("dist/app", "index.js")),
    ]


@pytest.mark.parametrize("targets", [project_targets(browser=None), project_targets(server=None)])
def test_missing_output_path_has_no_side_effects(fs_host: RecordingFSHost, targets) -> None:
    result = _pipeline(targets, fs_host).run()

    assert not result.success
    assert result.state is PipelineState.FAILED
    assert result.failed_at is PipelineState.RESOLVING
    assert fs_host.calls == []


def test_move_failure_stops_pipeline() -> None:
    host = RecordingFSHost(fail_on="move")

    result = _pipeline(project_targets(), host).run()

    assert not result.success
    assert result.failed_at is PipelineState.RELOCATING
    assert [c[0] for c in host.calls] == ["move"]
    assert result.written_files == []


def test_write_failure_reports_manifest_stage() -> None:
    host = RecordingFSHost(fail_on="write_text")

    result = _pipeline(project_targets(), host).run()

    assert result.failed_at is PipelineState.MANIFEST_WRITING


def test_bundled_server_uses_allow_list(fs_host: RecordingFSHost) -> None:
    targets = project_targets(bundleDependencies=True, externalDependencies=["sharp"])
    installed = {"sharp": "0.33.2", "firebase-functions": "4.5.0"}

    _pipeline(targets, fs_host, lookup=installed.get, host={"express": "^4"}).run()

    package = json.loads(fs_host.files[os.path.join("dist/app", "package.json")])
    assert package["dependencies"] == {
        "firebase-admin": "latest",
        "firebase-functions": "4.5.0",
        "sharp": "0.33.2",
    }


def test_unbundled_server_merges_host_dependencies(fs_host: RecordingFSHost) -> None:
    _pipeline(project_targets(), fs_host, host={"express": "^4.18.2"}).run()

    package = json.loads(fs_host.files[os.path.join("dist/app", "package.json")])
    assert package["dependencies"]["express"] == "^4.18.2"


def test_pipeline_on_disk(workspace) -> None:
    targets = project_targets()

    result = DeployFunctionPipeline(
        targets,
        workspace_root=str(workspace),
        fs_host=LocalFSHost(str(workspace)),
        lookup={"firebase-admin": "11.11.1"}.get,
    ).run()

    assert result.success
    function_root = workspace / "dist" / "app"
    client = function_root / "dist" / "app" / "browser"
    assert not (workspace / "dist/app/browser").exists()
    assert not (client / "index.html").exists()
    assert (client / "index.original.html").exists()
    assert (function_root / "dist" / "app" / "server" / "main.js").exists()

    package = json.loads((function_root / "package.json").read_text(encoding="utf-8"))
    assert package["dependencies"] == {
        "firebase-admin": "11.11.1",
        "firebase-functions": "latest",
        "@angular/core": "^17.0.0",
        "express": "^4.18.2",
    }
    index_js = (function_root / "index.js").read_text(encoding="utf-8")
    assert "require('./dist/app/server/main')" in index_js


def _cfg(workspace, **kwargs) -> BuilderConfig:  # noqa: ANN001
    return BuilderConfig(workspace_root=str(workspace), project="app", **kwargs)


def test_build_to_deploy_function_runs_builds_then_pipeline(workspace, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(pipeline, "check_node_version", lambda *a, **k: True)
    ran: list[str] = []

    summary, success = build_to_deploy_function(
        _cfg(workspace),
        lookup=_no_lookup,
        runner=lambda target: ran.append(target.name),
    )

    assert success, summary
    assert ran == ["app:build:production", "app:server:production"]
    assert "my-firebase" in summary
    assert "status: SUCCESS" in summary
    assert (workspace / "dist/app/index.js").exists()


def test_build_to_deploy_function_unknown_hosting_target(workspace, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(pipeline, "check_node_version", lambda *a, **k: True)
    ran: list[str] = []

    summary, success = build_to_deploy_function(
        _cfg(workspace, firebase_target="missing"),
        lookup=_no_lookup,
        runner=lambda target: ran.append(target.name),
    )

    assert not success
    assert ran == []
    assert "status: FAILED" in summary
    assert (workspace / "dist/app/browser").exists()


def test_build_failure_leaves_tree_untouched(workspace, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(pipeline, "check_node_version", lambda *a, **k: True)

    def failing_runner(target):  # noqa: ANN001, ARG001
        raise RuntimeError("ng run failed")

    summary, success = build_to_deploy_function(_cfg(workspace), lookup=_no_lookup, runner=failing_runner)

    assert not success
    assert "ng run failed" in summary
    assert (workspace / "dist/app/browser/index.html").exists()


def test_version_mismatch_does_not_block(workspace, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(pipeline, "check_node_version", lambda *a, **k: False)

    _, success = build_to_deploy_function(_cfg(workspace, skip_build=True), lookup=_no_lookup)

    assert success


def test_plan_has_no_side_effects(workspace) -> None:
    report = plan_deploy_function(_cfg(workspace), lookup=_no_lookup)

    assert "dist/app/browser -> " + os.path.join("dist/app", "dist/app/browser") in report
    assert "- express: ^4.18.2" in report
    assert "BundleAll" in report
    assert (workspace / "dist/app/browser/index.html").exists()
    assert not (workspace / "dist/app/package.json").exists()


def test_malformed_host_manifest_fails_before_relocation(workspace) -> None:
    (workspace / "package.json").write_text('{"dependencies": ["express"]}', encoding="utf-8")
    host = RecordingFSHost()

    result = DeployFunctionPipeline(
        project_targets(),
        workspace_root=str(workspace),
        fs_host=host,
        lookup=_no_lookup,
    ).run()

    assert not result.success
    assert result.failed_at is PipelineState.RESOLVING
    assert host.calls == []


def test_malformed_host_manifest_is_reported_as_failure(workspace, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(pipeline, "check_node_version", lambda *a, **k: True)
    (workspace / "package.json").write_text('{"dependencies": ["express"]}', encoding="utf-8")

    summary, success = build_to_deploy_function(_cfg(workspace, skip_build=True), lookup=_no_lookup)

    assert not success
    assert "status: FAILED" in summary
    assert (workspace / "dist/app/browser/index.html").exists()
