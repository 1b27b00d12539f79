"""Setup configuration for devstats"""

from setuptools import setup, find_packages

setup(
    name="azure-devops-dev-stats",
    version="0.1.0",
    description=(
        "Dashboard backend for Azure DevOps work items: per-developer counters, "
        "risk-weighted scores and completion evolution."
    ),
    author="Azure DevOps Dev Stats Contributors",
    author_email="",
    python_requires=">=3.11",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "requests>=2.28.0",
        "fastapi>=0.100.0",
        "uvicorn>=0.23.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "httpx>=0.24.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "devstats=devstats.main:main",
        ],
    },
)
