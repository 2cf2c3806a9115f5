from setuptools import setup, find_packages

setup(
    name="crx-risk-analyzer",
    version="0.1.0",
    description="Static risk assessment for Chrome and Edge extension packages",
    author="debarshi17",
    author_email="your-email@example.com",
    url="https://github.com/debarshi17/chrome-extension-security-analyzer",
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=[
        "requests>=2.31.0",
        "beautifulsoup4>=4.12.2",
        "fastapi>=0.109.0",
        "uvicorn>=0.27.0",
        "python-multipart>=0.0.6",
        "pydantic>=2.0",
        "tqdm>=4.66.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "httpx>=0.25.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "crx-analyzer=crx_analyzer.analyzer:main",
            "crx-analyzer-web=crx_analyzer.web.app:main",
        ],
    },
    python_requires=">=3.9",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Security",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.9",
    ],
)
