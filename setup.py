"""Setup script for the HR platform domain core following Cosmic Python pattern."""

from setuptools import setup, find_namespace_packages

setup(
    name="hr-platform-core",
    version="1.0.0",
    description="HR platform - event-driven employee and survey domain core",
    author="HR Platform Team",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["employee*", "survey*", "shared*"]),
    py_modules=["config"],
    python_requires=">=3.11",
    install_requires=[
        "fastapi",
        "uvicorn[standard]",
        "pydantic>=2",
        "sqlalchemy>=2",
        "psycopg2-binary",
        "redis>=5.0.1",
        "passlib",
        "email-validator",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "pytest-cov",
            "httpx",
            "fakeredis",
        ],
        "dev": [
            "black",
            "flake8",
            "mypy",
            "pre-commit",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.11",
        "Topic :: Office/Business",
    ],
)
