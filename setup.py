# setup.py
from setuptools import setup, find_packages

setup(
    name="page_scout",
    version="0.1.0",
    description="Асинхронный краулер page_scout с каскадом стратегий загрузки",
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={"page_scout.report": ["templates/*.j2"]},
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "click>=8.2",
        "jinja2>=3.1",
        "lxml>=4.9",
        "markdownify>=0.11",
        "playwright>=1.40",
        "pydantic>=2.5",
        "PyYAML>=6.0",
        "readability-lxml>=0.8.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "page-scout=page_scout.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
