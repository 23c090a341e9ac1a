"""`styles` task tests, compiling real Sass with libsass."""

import json

from asset_pipeline.build.tasks.styles import StylesPipeline


class RecordingChannel:
    """Stands in for the live-reload channel."""

    def __init__(self, active=True):
        self.active = active
        self.injected = []

    def inject_css(self, paths):
        self.injected.append(list(paths))


def test_partials_are_imported_not_compiled(write_file, make_config, project):
    write_file("src/scss/style.scss", '@import "vars";\n@import "partials/base";\na{margin:$gap}\n')
    write_file("src/scss/_vars.scss", "$gap: 4px;\nhtml{margin:0}\n")
    write_file("src/scss/partials/_base.scss", "body{color:red}\n")

    result = StylesPipeline(make_config(), root=project).run()

    assert result.success, f"Unexpected failures: {result.failures}"
    css = (project / "dist/css/style.css").read_text()
    assert "body{color:red" in css
    assert "margin:4px" in css
    assert "html{margin:0" in css
    assert not (project / "dist/css/_vars.css").exists(), "Partials must not be compiled on their own"


def test_sourcemap_written_and_referenced(write_file, make_config, project):
    write_file("src/scss/style.scss", '@import "partials/base";\n')
    write_file("src/scss/partials/_base.scss", "body{color:red}\n")

    StylesPipeline(make_config(use_sourcemaps=True), root=project).run()

    css = (project / "dist/css/style.css").read_text()
    assert css.rstrip().endswith("/*# sourceMappingURL=style.css.map */")
    source_map = json.loads((project / "dist/css/style.css.map").read_text())
    assert any(s.endswith("_base.scss") for s in source_map["sources"]), \
        f"Map should point at the partial: {source_map['sources']}"


def test_no_sourcemap_when_disabled(write_file, make_config, project):
    write_file("src/scss/style.scss", "body{color:red}\n")

    StylesPipeline(make_config(use_sourcemaps=False), root=project).run()

    assert "sourceMappingURL" not in (project / "dist/css/style.css").read_text()
    assert not (project / "dist/css/style.css.map").exists()


def test_bulk_directory_import(write_file, make_config, project):
    write_file("src/scss/style.scss", '@import "components/*";\n')
    write_file("src/scss/components/_button.scss", ".button{color:blue}\n")
    write_file("src/scss/components/_card.scss", ".card{color:green}\n")

    result = StylesPipeline(make_config(use_sourcemaps=False), root=project).run()

    assert result.success, f"Unexpected failures: {result.failures}"
    css = (project / "dist/css/style.css").read_text()
    assert css.index(".button") < css.index(".card"), "Matches are imported in sorted order"


def test_compile_error_only_drops_that_file(write_file, make_config, project, capsys):
    write_file("src/scss/good.scss", "a{color:red}\n")
    write_file("src/scss/broken.scss", "a{color:$undefined}\n")

    result = StylesPipeline(make_config(use_sourcemaps=False), root=project).run()

    assert (project / "dist/css/good.css").exists()
    assert not (project / "dist/css/broken.css").exists()
    assert [f.stage for f in result.failures] == ["sass"]
    assert result.failures[0].path.endswith("broken.scss")
    err = capsys.readouterr().err
    assert "broken.scss" in err


def test_autoprefix_for_configured_browsers(write_file, make_config, project):
    write_file("src/scss/style.scss", "a{user-select:none}\n")

    StylesPipeline(make_config(styles_browsers_supported=["ie >= 11"], use_sourcemaps=False),
                   root=project).run()

    assert "-ms-user-select:none" in (project / "dist/css/style.css").read_text()


def test_autoprefix_disabled(write_file, make_config, project):
    write_file("src/scss/style.scss", "a{user-select:none}\n")

    StylesPipeline(make_config(styles_browsers_supported=["ie >= 11"], use_autoprefixer=False,
                               use_sourcemaps=False), root=project).run()

    assert "-ms-" not in (project / "dist/css/style.css").read_text()


def test_minified_copy(write_file, make_config, project):
    write_file("src/scss/style.scss", "a {\n  color: red;\n}\n")

    StylesPipeline(make_config(use_minify_css=True, styles_output_style="expanded"),
                   root=project).run()

    assert (project / "dist/css/style.css").exists()
    minified = (project / "dist/css/style.min.css").read_text()
    assert "\n" not in minified.strip()
    assert "sourceMappingURL" not in minified


def test_line_endings_corrected(write_file, make_config, project):
    write_file("src/scss/style.scss", "a {\n  color: red;\n}\nb {\n  color: blue;\n}\n")

    StylesPipeline(make_config(styles_output_style="expanded", use_sourcemaps=False,
                               use_line_ending_corrector=True, line_ending="CRLF"),
                   root=project).run()

    raw = (project / "dist/css/style.css").read_bytes()
    assert b"\r\n" in raw
    assert b"\n" not in raw.replace(b"\r\n", b"")


def test_css_injected_once_per_run(write_file, make_config, project, capsys):
    write_file("src/scss/style.scss", "a{color:red}\n")
    channel = RecordingChannel()

    StylesPipeline(make_config(use_minify_css=True), channel=channel, root=project).run()

    assert channel.injected == [["style.css", "style.min.css"]]
    assert capsys.readouterr().out.count('TASK: "styles" Completed!') == 1


def test_inactive_channel_is_left_alone(write_file, make_config, project):
    write_file("src/scss/style.scss", "a{color:red}\n")
    channel = RecordingChannel(active=False)

    StylesPipeline(make_config(), channel=channel, root=project).run()

    assert channel.injected == []
