from setuptools import setup, find_packages

setup(
    name='devcontainer_publish',
    version='0.1',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    python_requires='>=3.8',
    install_requires=[
        'Click',
        'PyYAML',
        'pydantic>=2',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-mock',
        ],
    },
    entry_points='''
        [console_scripts]
        devcontainer-publish=devcontainer_publish.cli:cli
    ''',
)
