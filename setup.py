from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="workerscale",
    version="0.1.0",
    description="Expected worker replica count from task queue backlog, served to an external autoscaler",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["lambda_function"],
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=[
        "boto3>=1.26.0",
        "botocore>=1.29.0",
        "retry>=0.9.2",
        "redis>=4.5.0",
        "requests>=2.28.0",
        "dbos>=2.0,<3",
        "fastapi>=0.100.0",
        "pydantic>=2.0",
        "uvicorn>=0.22.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "httpx>=0.24.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "workerscale-server=workerscale.api.app:run",
            "workerscale-worker=workerscale.worker:run",
        ],
    },
)
