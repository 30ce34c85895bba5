from setuptools import setup, find_packages

setup(
    name="seam_rpc",
    version="0.1.0",
    description="Seam RPC - transport-agnostic JSON-RPC 2.0 request processing engine",
    author="Seam RPC Team",
    packages=find_packages(include=["seam_rpc", "seam_rpc.*"]),
    install_requires=[
        "pyzmq>=24.0.0",
        "opentelemetry-api>=1.14.0",
        "opentelemetry-sdk>=1.14.0",
        "opentelemetry-exporter-otlp>=1.14.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-benchmark",
            "pytest-cov",
            "black",
            "isort",
            "pylint",
        ],
    },
    entry_points={
        "console_scripts": [
            "seam-rpc=seam_rpc.cli:main",
        ],
    },
    python_requires=">=3.9",
)
