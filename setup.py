from setuptools import setup, find_packages

setup(
    name="session-handoff",
    version="0.1.0",
    description="Seed a session cookie and hand off to another Apify actor",
    author="Session Handoff Team",
    packages=find_packages(exclude=["*.tests", "*.tests.*"]),
    install_requires=[
        "pydantic>=2.0.0",
        "click>=8.0.0",
        "apify>=2.0.0",
        "crawlee>=0.6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "setuptools",
            "black>=22.0.0",
            "isort>=5.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "session-handoff=session_handoff.cli:main",
        ],
    },
    python_requires=">=3.10",
)
