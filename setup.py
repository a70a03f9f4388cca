"""
QR Menu - digital restaurant menus behind QR codes

Setup script for package installation

Version History:
- 1.0.0: Admin API, public QR menu, orders, AI chat, Redis menu cache
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="qrmenu",
    version="1.0.0",
    description="QR Menu - restaurant menus behind QR codes with a read-through Redis cache",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Framework :: FastAPI",
    ],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "httpx>=0.24.0",  # FastAPI TestClient
            "black>=23.0.0",
            "isort>=5.12.0",
        ],
        "production": [
            "uvloop>=0.19.0",  # Faster event loop
        ],
    },
    entry_points={
        "console_scripts": [
            "qrmenu-server=qrmenu.web.app:run_server",
        ],
    },
    include_package_data=True,
)
