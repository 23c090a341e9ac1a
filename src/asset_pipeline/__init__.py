"""
Asset Pipeline: config-driven front-end build tasks.

Sass to CSS, script bundling, linting, image minification, translation
templates, live reload and file watching, exposed as invoke tasks.
"""

__version__ = '0.1.0'
