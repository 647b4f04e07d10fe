from setuptools import setup

setup(
    name="token-provider",
    version="0.1.0",
    py_modules=["decorators"],
    packages=[
        "token_provider",
        "token_provider.providers",
    ],
    install_requires=[
        "aiohttp>=3.11.15",
        "multidict>=6.0.0",
        "python-dotenv>=1.1.0",
        "loguru>=0.7.0",
        "pydash>=7.0.0",
        "pydantic>=2.5.0",
        "fastapi>=0.110.0",
        "uvicorn>=0.29.0",
        "pyyaml>=6.0.2",
    ],
    extras_require={
        "test": [
            "pytest>=8.0.0",
            "pytest-asyncio>=0.23.0",
            "httpx>=0.27.0",
        ],
    },
    python_requires=">=3.8",
)
