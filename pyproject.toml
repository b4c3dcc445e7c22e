[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bootsrv"
version = "0.1.0"
description = "Network boot service building blocks: iPXE scripts and DHCP options, syslog parsing, hardware data models, TFTP transfers and metrics."
requires-python = ">=3.10"
keywords = ["ipxe", "pxe", "netboot", "dhcp", "tftp", "syslog", "provisioning", "bare-metal"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Boot",
    "Topic :: System :: Networking",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["bootsrv"]

[tool.hatch.build.targets.sdist]
include = ["bootsrv", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
