[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rtnlkit"
version = "0.1.0"
description = "Build route, rule, neighbour and traffic-control rtnetlink requests and pass them to a pluggable transport"
requires-python = ">=3.10"
dependencies = []
keywords = ["netlink", "rtnetlink", "routing", "neighbour", "traffic-control", "tc"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
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

[tool.hatch.build.targets.wheel]
packages = ["rtnlkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"
