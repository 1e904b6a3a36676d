from setuptools import find_packages, setup

setup(
    name="readycheck",
    version="0.3.0",
    description="Backend readiness verifier for Supabase-backed applications",
    author="FormFast Engineering",
    license="MIT",
    packages=find_packages(exclude=["tests*"]),
    python_requires=">=3.9",
    install_requires=[
        "httpx>=0.25.0",
        "python-dotenv>=1.0.0",
        "pyyaml>=6.0.1",
        "click>=8.1.0",
        "rich>=13.0.0",
        "jinja2>=3.1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "respx>=0.20.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "readycheck=readycheck.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Database",
        "Topic :: System :: Systems Administration",
    ],
)
