"""
Setup script for authflow.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="authflow",
    version="1.0.0",
    description="Two-step authentication service: password verification followed by a TOTP second factor",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Framework :: FastAPI",
        "Topic :: Security",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.110.0",
        "uvicorn>=0.27.0",
        "pydantic[email]>=2.5.0",
        "pydantic-settings>=2.1.0",
        "sqlalchemy>=2.0.0",
        "psycopg2-binary>=2.9.9",
        "passlib[bcrypt]>=1.7.4",
        # passlib cannot load bcrypt>=4.1 backends cleanly
        "bcrypt>=4.0.1,<4.1",
        "python-jose[cryptography]>=3.3.0",
        "pyotp>=2.9.0",
        "qrcode[pil]>=7.4.2",
        "prometheus-client>=0.19.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "httpx>=0.25.0",
        ],
    },
    keywords="authentication, 2fa, totp, jwt, fastapi",
)
