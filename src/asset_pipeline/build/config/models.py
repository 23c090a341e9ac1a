"""
Pydantic models for the asset pipeline configuration.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator


GLOB_FIELDS = (
    'styles_src', 'styles_include_paths', 'styles_browsers_supported',
    'scripts_vendor_src', 'scripts_custom_src',
    'watch_styles', 'watch_js_custom', 'watch_js_vendor',
    'images_src', 'watch_images', 'i18n_src', 'watch_i18n',
)


class PipelineConfig(BaseModel):
    """Immutable build configuration, loaded once per process.

    Key names follow the config file. A string where a list of globs is
    expected is treated as a single-element list.
    """
    model_config = ConfigDict(frozen=True, extra='ignore')

    project_url: str

    # Styles
    styles_src: List[str] = []
    styles_dest: str = 'css'
    styles_combined_name: str = 'style'
    styles_browsers_supported: List[str] = ['last 2 versions']
    styles_output_style: Literal['nested', 'expanded', 'compact', 'compressed'] = 'compressed'
    styles_precision: int = 10
    styles_include_paths: List[str] = []

    # Scripts
    scripts_vendor_src: List[str] = []
    scripts_custom_src: List[str] = []
    scripts_dest: str = 'js'
    scripts_combined_name: str = 'scripts'

    # Watch globs
    watch_styles: List[str] = []
    watch_js_custom: List[str] = []
    watch_js_vendor: List[str] = []

    # Feature flags
    use_autoprefixer: bool = True
    use_linting: bool = True
    js_linting_fail_on_error: bool = False
    use_browsersync: bool = True
    use_injectcss: bool = True
    use_sourcemaps: bool = True
    use_merge_media_queries: bool = False
    use_minify_css: bool = False
    use_line_ending_corrector: bool = False
    line_ending: Literal['LF', 'CRLF', 'CR'] = 'LF'

    # Images
    use_imagemin: bool = False
    images_src: List[str] = []
    images_dest: str = 'images'
    images_jpeg_quality: int = 85
    watch_images: List[str] = []

    # i18n
    use_i18n: bool = False
    i18n_src: List[str] = []
    i18n_dest: str = 'languages'
    i18n_domain: Optional[str] = None
    i18n_package: Optional[str] = None
    i18n_bug_report: Optional[str] = None
    i18n_team: Optional[str] = None
    watch_i18n: List[str] = []

    # Live reload
    browsersync_port: int = 3000

    @field_validator(*GLOB_FIELDS, mode='before')
    @classmethod
    def _coerce_to_list(cls, value):
        if isinstance(value, str):
            return [value]
        return value

    @field_validator('images_jpeg_quality')
    @classmethod
    def _check_quality(cls, value):
        if not 1 <= value <= 95:
            raise ValueError('must be between 1 and 95')
        return value

    @property
    def newline(self) -> str:
        """Line terminator selected by ``line_ending``."""
        return {'LF': '\n', 'CRLF': '\r\n', 'CR': '\r'}[self.line_ending]
