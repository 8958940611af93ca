import threading

from typer.testing import CliRunner

from assetpipe.cli.app import app
from assetpipe.orchestration import composites
from assetpipe.tasks import transforms

runner = CliRunner()


def test_build_command_succeeds(project, monkeypatch):
    monkeypatch.setenv("ASSETPIPE_CSS_COMMAND", "")

    result = runner.invoke(app, ["--root", str(project), "build"])

    assert result.exit_code == 0, result.output
    assert (project / "dist/index.html").exists()
    assert "sourceMappingURL" in (project / "dist/assets/css/style.css").read_text()


def test_prod_flag_selects_production_mode(project, monkeypatch):
    monkeypatch.setenv("ASSETPIPE_CSS_COMMAND", "")

    result = runner.invoke(app, ["--prod", "--root", str(project), "styles"])

    assert result.exit_code == 0, result.output
    assert "sourceMappingURL" not in (project / "dist/assets/css/style.css").read_text()


def test_failing_task_exits_non_zero(project, monkeypatch):
    copied = threading.Event()
    copy_assets = composites.TRANSFORMS["copyAssets"]

    def copy_then_signal(ctx, cancel=None):
        try:
            return copy_assets(ctx, cancel)
        finally:
            copied.set()

    def broken(ctx, cancel=None):
        copied.wait(timeout=5)
        raise ValueError("malformed stylesheet")

    monkeypatch.setitem(composites.TRANSFORMS, "copyAssets", copy_then_signal)
    monkeypatch.setitem(composites.TRANSFORMS, "styles", broken)
    monkeypatch.setenv("ASSETPIPE_CSS_COMMAND", "")

    result = runner.invoke(app, ["--root", str(project), "build"])

    assert result.exit_code == 1
    # Output of a sibling that finished before the failure is kept.
    assert (project / "dist/index.html").exists()
    assert not (project / "dist/assets/css/style.css").exists()


def test_single_task_command(project, monkeypatch):
    result = runner.invoke(app, ["--root", str(project), "copyAssets"])

    assert result.exit_code == 0, result.output
    assert (project / "dist/index.html").exists()
    assert not (project / "dist/assets").exists()


def test_bundle_without_project_name_exits_non_zero(project, monkeypatch):
    (project / "package.json").unlink()
    monkeypatch.setenv("ASSETPIPE_CSS_COMMAND", "")
    monkeypatch.setattr(transforms.scripts, "transpile", lambda code, **kw: (code, None))

    result = runner.invoke(app, ["--root", str(project), "bundle"])

    assert result.exit_code == 1
    assert not (project / "finalproject").exists()


def test_invalid_root_is_rejected(tmp_path):
    result = runner.invoke(app, ["--root", str(tmp_path / "missing"), "build"])

    assert result.exit_code != 0
