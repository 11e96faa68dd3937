from setuptools import find_packages, setup

setup(
    name="gitembed",
    version="1.0.0",
    description="Repository card metadata for GitHub, GitLab, Gitea and Forgejo",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.10",
    install_requires=[
        "requests",
        "platformdirs",
        "PyYAML",
        "rich",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
        ],
    },
    entry_points={
        "console_scripts": [
            "gitembed=gitembed.cli:main",
        ],
    },
)
