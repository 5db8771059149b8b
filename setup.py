from setuptools import setup, find_packages

setup(
    name="decompile-tools",
    version="0.1.0",
    description="Orchestrates external decompilers into a virtual filesystem",
    author="Decompile Tools Team",
    packages=find_packages(include=["decompile_tools", "decompile_tools.*", "config", "config.*"]),
    package_data={
        "decompile_tools": ["tool_scripts/*.py", "bundled_tools/README.md"],
        "config": ["templates/env.template"],
    },
    install_requires=[
        "pydantic>=2.0.0",
        "psutil>=5.9.0",
        "click>=8.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "black>=22.0.0",
            "isort>=5.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "decompile-tools=decompile_tools.cli:main",
        ],
    },
    python_requires=">=3.11",
)
