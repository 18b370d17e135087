from setuptools import setup, find_packages

setup(
    name="helm-deploy",
    version="0.1.0",
    description="Deploy an umbrella Helm chart as one release per subchart.",
    packages=find_packages(exclude=("tests", "tests.*")),
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=[
        "typer>=0.9",
        "rich>=13",
        "pydantic>=2",
        "PyYAML>=6",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "helm-deploy=helm_deploy.cli:main",
        ],
    },
)
