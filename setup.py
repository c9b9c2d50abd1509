from setuptools import setup, find_packages

setup(
    name="finvoice",
    version="0.1.0",
    description="Voice input for a personal finance tracker: silence-triggered capture, transcription and structured extraction",
    author="",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy>=1.21.0",
        "scipy>=1.7.0",
        "rich>=12.5.0",
        "pydantic>=2.0.0",
        "pyyaml>=6.0.0",
        "pypubsub>=4.0.3",
        "aiohttp>=3.9.0",
        "google-genai>=1.0.0",
    ],
    extras_require={
        "microphone": [
            "pyaudio>=0.2.11",
        ],
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "finvoice=finvoice.main:main",
        ],
    },
)
