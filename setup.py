from setuptools import setup, find_packages

setup(
    name="uigraph_agent",
    version="0.0.1",
    packages=find_packages(include=["uigraph_agent", "uigraph_agent.*"]),
    include_package_data=True,
    install_requires=[
        "playwright==1.52.0",
        "pydantic",
        "langgraph",
        "langchain-core",
        "langchain-openai",
        "langchain",
        "langchain-mcp-adapters",
        "openai",
        "python-dotenv",
        "pyyaml",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    python_requires='>=3.10',
)
