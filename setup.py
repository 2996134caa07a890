"""
Setup script for kwkhtmltopdf-service.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_packages

setup(
    name="kwkhtmltopdf-service",
    version="0.1.0",
    packages=find_packages(include=["kwkhtmltopdf_service", "kwkhtmltopdf_service.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.115.3",
        "starlette>=0.40",
        "pydantic>=2.0",
        "pydantic-settings>=2.0",
        "python-multipart>=0.0.9",
        "uvicorn>=0.27",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
            "httpx>=0.25",
        ],
    },
    entry_points={
        "console_scripts": [
            "kwkhtmltopdf-service=kwkhtmltopdf_service.__main__:main",
        ],
    },
)
