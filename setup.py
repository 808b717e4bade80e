from setuptools import setup, find_packages

setup(
    name="charity-gateway",
    version="1.0.0",
    packages=find_packages(include=["charity_gateway", "charity_gateway.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi",
        "uvicorn",
        "httpx",
        "pydantic>=2",
        "pydantic-settings",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "respx",
        ],
    },
)
