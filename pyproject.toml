[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "socketlab"
version = "0.1.0"
description = "Small socket and raw-packet toolkit: echo servers, ping, ARP scan, a file transfer pair and packet builders"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "socket",
    "networking",
    "tcp",
    "udp",
    "arp",
    "icmp",
    "ping",
    "ethernet",
    "vlan",
    "checksum",
    "crc16",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
socketlab-ping = "socketlab.ping:main"
socketlab-arp-scan = "socketlab.arpscan:main"
socketlab-ft-server = "socketlab.ft_server:main"
socketlab-ft-client = "socketlab.ft_client:main"
socketlab-echo = "socketlab.echo:main"
socketlab-opcalc = "socketlab.opcalc:main"
socketlab-broadcast = "socketlab.broadcast:main"

[tool.hatch.build.targets.wheel]
packages = ["socketlab"]

[tool.hatch.build.targets.sdist]
include = ["socketlab", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
