#!/usr/bin/env python3
"""
Setup script for ProjectDesk

Install with:
    pip install -e .

Or with test tooling:
    pip install -e ".[dev]"
"""

from setuptools import setup, find_packages
from pathlib import Path

readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

requirements = [
    # Web
    "fastapi>=0.110.0",
    "uvicorn[standard]>=0.27.0",
    "python-multipart>=0.0.9",
    "slowapi>=0.1.9",
    # Settings / schemas
    "pydantic[email]>=2.5.0",
    "pydantic-settings>=2.1.0",
    # Database
    "sqlalchemy[asyncio]>=2.0.25",
    "aiosqlite>=0.19.0",
    "asyncpg>=0.29.0",
    # Auth
    "python-jose[cryptography]>=3.3.0",
    "bcrypt>=4.1.0",
    "google-auth>=2.27.0",
    "requests>=2.31.0",
    # AI
    "anthropic>=0.18.0",
    "httpx>=0.26.0",
    # Storage
    "boto3>=1.34.0",
    "minio>=7.2.0",
    # Documents
    "reportlab>=4.0.0",
    "pdfplumber>=0.10.0",
    "PyPDF2>=3.0.0",
    "beautifulsoup4>=4.12.0",
    "markdown>=3.5.0",
    "bleach>=6.1.0",
]

setup(
    name="projectdesk",
    version="1.0.0",
    description="ProjectDesk - client project requests, quotations and delivery tracking",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    packages=find_packages(include=["projectdesk", "projectdesk.*"]),
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
            "faker>=22.0.0",
            "black>=24.1.0",
            "isort>=5.13.0",
            "mypy>=1.8.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "projectdesk=projectdesk.main:serve",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Framework :: FastAPI",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
