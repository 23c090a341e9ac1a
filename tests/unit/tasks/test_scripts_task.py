"""`lint` and `scripts` task tests, run through the invoke namespace."""

import pytest
from invoke import Executor
from invoke.exceptions import Exit

from asset_pipeline.build.tasks import build_namespace
from asset_pipeline.build.tasks.scripts import LintPipeline, ScriptsPipeline


def run_task(config, root, name):
    Executor(build_namespace(config, root=root)).execute(name)


@pytest.fixture
def scripts_project(write_file):
    write_file("src/js/vendor/lib.js", "vendor();")
    write_file("src/js/custom/app.js", "custom();")


def test_vendor_before_custom(scripts_project, make_config, project):
    run_task(make_config(), project, "scripts")

    bundle = project / "dist/js/scripts.js"
    assert bundle.read_text() == "vendor();\ncustom();"
    assert (project / "dist/js/scripts.min.js").exists()


def test_custom_order_follows_globs(write_file, make_config, project):
    write_file("src/js/custom/b.js", "b();")
    write_file("src/js/custom/a.js", "a();")
    write_file("src/js/custom/main.js", "main();")
    config = make_config(scripts_custom_src=["src/js/custom/main.js", "src/js/custom/*.js"])

    ScriptsPipeline(config, project).run()

    assert (project / "dist/js/scripts.js").read_text() == "main();\na();\nb();"


def test_lint_failure_reported_but_build_continues(write_file, make_config, project, capsys):
    write_file("src/js/custom/app.js", "debugger;")

    run_task(make_config(js_linting_fail_on_error=False), project, "scripts")

    assert (project / "dist/js/scripts.js").read_text() == "debugger;"
    assert "W087" in capsys.readouterr().err


def test_lint_failure_breaks_build_when_configured(write_file, make_config, project):
    write_file("src/js/vendor/lib.js", "vendor();")
    write_file("src/js/custom/app.js", "debugger;")

    with pytest.raises(Exit) as exc_info:
        run_task(make_config(js_linting_fail_on_error=True), project, "scripts")

    assert exc_info.value.code == 1
    assert not (project / "dist/js/scripts.js").exists(), "No bundle when lint breaks the build"


def test_vendor_scripts_are_not_linted(write_file, make_config, project):
    write_file("src/js/vendor/lib.js", "debugger;")
    write_file("src/js/custom/app.js", "custom();")

    assert LintPipeline(make_config(js_linting_fail_on_error=True), project).run() == []


def test_linting_disabled(write_file, make_config, project):
    write_file("src/js/custom/app.js", "debugger;")

    run_task(make_config(use_linting=False, js_linting_fail_on_error=True), project, "scripts")

    assert (project / "dist/js/scripts.js").exists()


def test_line_endings_corrected(write_file, make_config, project):
    write_file("src/js/vendor/lib.js", "vendor();\n")
    write_file("src/js/custom/app.js", "custom();\n")

    ScriptsPipeline(make_config(use_line_ending_corrector=True, line_ending="CRLF"), project).run()

    assert (project / "dist/js/scripts.js").read_bytes() == b"vendor();\r\n\r\ncustom();\r\n"


def test_completion_notice(scripts_project, make_config, project, capsys):
    ScriptsPipeline(make_config(), project).run()

    assert 'TASK: "scripts" Completed!' in capsys.readouterr().out


def test_latin1_vendor_file_is_bundled_as_is(write_file, make_config, project, capsys):
    vendor = project / "src/js/vendor/legacy.js"
    vendor.parent.mkdir(parents=True)
    vendor.write_bytes(b"var s='caf\xe9';")
    write_file("src/js/custom/app.js", "custom();")

    result = ScriptsPipeline(make_config(), project).run()

    assert (project / "dist/js/scripts.js").read_bytes() == b"var s='caf\xe9';\ncustom();"
    assert not (project / "dist/js/scripts.min.js").exists(), "Minifying needs UTF-8 text"
    assert result.success
    assert "Skipped scripts.min.js" in capsys.readouterr().err


def test_undecodable_custom_file_is_reported_and_others_linted(write_file, make_config, project,
                                                               capsys):
    bad = project / "src/js/custom/latin1.js"
    bad.parent.mkdir(parents=True)
    bad.write_bytes(b"var s='caf\xe9';")
    write_file("src/js/custom/app.js", "debugger;")

    violations = LintPipeline(make_config(), project).run()

    assert [v.code for v in violations] == ["W087"]
    err = capsys.readouterr().err
    assert "❌ [lint] latin1.js" in err
    assert "Not valid UTF-8" in err
