"""
Root pytest configuration for asset pipeline.

Bootstraps logging and provides fixtures that build throwaway projects.
"""

import json
import pytest
from pathlib import Path

from asset_pipeline.build.config import CONFIG_PATH_ENV_VAR, PipelineConfig
from asset_pipeline.run.config.logging import bootstrap_logging

bootstrap_logging()


BASE_CONFIG = {
    "project_url": "mysite.local",
    "styles_src": ["src/scss/*.scss"],
    "styles_dest": "dist/css",
    "styles_combined_name": "style",
    "scripts_vendor_src": ["src/js/vendor/*.js"],
    "scripts_custom_src": ["src/js/custom/*.js"],
    "scripts_dest": "dist/js",
    "scripts_combined_name": "scripts",
    "watch_styles": ["src/scss/**/*.scss"],
    "watch_js_custom": ["src/js/custom/*.js"],
    "watch_js_vendor": ["src/js/vendor/*.js"],
    "use_browsersync": False,
}


@pytest.fixture
def project(tmp_path, monkeypatch):
    """An empty project directory that is also the working directory."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(CONFIG_PATH_ENV_VAR, raising=False)
    return tmp_path


@pytest.fixture
def write_file(project):
    """Write a text file below the project and return its path."""
    def write(relative: str, content: str) -> Path:
        path = project / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding='utf-8')
        return path
    return write


@pytest.fixture
def make_config():
    """Build a PipelineConfig from BASE_CONFIG plus overrides."""
    def make(**overrides) -> PipelineConfig:
        return PipelineConfig.model_validate({**BASE_CONFIG, **overrides})
    return make


@pytest.fixture
def write_config(project):
    """Write BASE_CONFIG plus overrides as assets-config.json."""
    def write(**overrides) -> Path:
        path = project / "assets-config.json"
        path.write_text(json.dumps({**BASE_CONFIG, **overrides}, indent=2), encoding='utf-8')
        return path
    return write
