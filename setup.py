"""Setup for Prompt Lab."""

from setuptools import setup, find_packages

setup(
    name="prompt-lab",
    version="0.1.0",
    description="Local-first prompt workspace with AI-assisted evaluation, enhancement and code planning",
    author="The Kitchen Coder",
    packages=find_packages(include=["prompt_lab", "prompt_lab.*"]),
    install_requires=[
        "gradio>=6.0.0",
        "openai>=1.0.0",
        "pydantic>=2.0",
        "pydantic-settings>=2.0",
        "pyyaml>=6.0",
        "python-dotenv>=1.0.0",
        "bcrypt>=4.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "prompt-lab=prompt_lab.app:main",
        ],
    },
    python_requires=">=3.10",
)
