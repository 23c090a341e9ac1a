from setuptools import setup, find_packages
setup(
    name='asset-pipeline',
    version='0.1.0',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    include_package_data=True,
    package_data={
        'asset_pipeline': [
            'run/reload/*.js',
        ],
    },
    description='Config-driven front-end asset build tasks.',
    author='Your Name',
    author_email='youremail@example.com',
    python_requires='>=3.9',
    install_requires=[
        'invoke>=2.0.0',
        'pydantic>=2.0.0',
        'json5>=0.9.0',
        'libsass>=0.22.0',
        'tinycss2>=1.2.0',
        'rcssmin>=1.1.0',
        'rjsmin>=1.2.0',
        'esprima>=4.0.1',
        'watchdog>=3.0.0',
        'requests>=2.25.0',
        'fastapi>=0.100.0',
        'uvicorn[standard]>=0.23.0',
        'Pillow>=10.0.0',
        'Babel>=2.12.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0.0',
            'httpx>=0.24.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'assets = asset_pipeline.cli:main',
        ],
    },
)
