"""Task namespace and command line tests."""

import pytest
from invoke import Executor

from asset_pipeline.build.tasks import build_namespace
from asset_pipeline.cli import create_program, main


def test_every_task_is_registered(make_config, project):
    namespace = build_namespace(make_config(), root=project)

    assert set(namespace.task_names) == {
        "styles", "lint", "scripts", "browser-sync", "images", "i18n", "watch", "default",
    }
    assert namespace.default == "default"


def test_default_builds_first(make_config, project):
    default = build_namespace(make_config(), root=project)["default"]

    assert [t.name for t in default.pre] == ["styles", "scripts"]


def test_optional_tasks_skip_when_disabled(make_config, project, capsys):
    executor = Executor(build_namespace(make_config(), root=project))

    executor.execute("images")
    executor.execute("i18n")

    out = capsys.readouterr().out
    assert "use_imagemin is false" in out
    assert "use_i18n is false" in out


def test_i18n_task_writes_template(write_file, make_config, project):
    write_file("theme/page.php", "<?php _e( 'Read more', 'mytheme' );")
    config = make_config(use_i18n=True, i18n_src=["theme/**/*.php"], i18n_domain="mytheme")

    Executor(build_namespace(config, root=project)).execute("i18n")

    assert "Read more" in (project / "languages/mytheme.pot").read_text()


def test_images_task_writes_below_dest(make_config, project):
    source = project / "img/raw/icons/logo.svg"
    source.parent.mkdir(parents=True)
    source.write_bytes(b"<svg/>")
    config = make_config(use_imagemin=True, images_src=["img/raw/**/*"], images_dest="img")

    Executor(build_namespace(config, root=project)).execute("images")

    assert (project / "img/icons/logo.svg").read_bytes() == b"<svg/>"


def test_missing_config_aborts_before_tasks(project, capsys, monkeypatch):
    def fail_build(*args, **kwargs):
        raise AssertionError("Tasks must not be registered without a config")
    monkeypatch.setattr("asset_pipeline.cli.build_namespace", fail_build)

    with pytest.raises(SystemExit) as exc_info:
        main(["assets", "--list"])

    assert exc_info.value.code == 1
    assert "not found" in capsys.readouterr().err


def test_program_lists_tasks(write_config, project):
    write_config()

    program = create_program()

    assert "styles" in program.namespace.task_names
