from setuptools import setup, find_packages

setup(
    name="dragprobe",
    version="0.3.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    package_data={
        "dragprobe": [
            "web/pages/*.html",
            "web/pages/*.js",
            "web/templates/*.html",
        ],
    },
    install_requires=[
        "fastapi>=0.108.0",
        "uvicorn[standard]>=0.24.0",
        "jinja2>=3.1.2",
        "pydantic>=2.5.0",
        "click>=8.1.7",
        "rich>=13.7.0",
        "playwright>=1.40.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
            "httpx>=0.25.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "dragprobe=dragprobe.cli:main",
        ],
    },
    python_requires=">=3.10",
    author="dragprobe",
    description="Cross-browser drag-and-drop conformance suite driven through Playwright",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Testing",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
