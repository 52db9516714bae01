from setuptools import setup, find_packages

setup(
    name="pharmasave",
    version="0.1.0",
    packages=find_packages(include=["pharmasave", "pharmasave.*"]),
    install_requires=[
        "fastapi",
        "uvicorn",
        "sqlalchemy",
        "alembic",
        "psycopg2-binary",
        "python-jose[cryptography]",
        "passlib[bcrypt]",
        "bcrypt<4.1",
        "python-multipart",
        "redis",
        "boto3",
        "python-dotenv",
        "pydantic",
        "pydantic-settings",
        "email-validator",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
)
