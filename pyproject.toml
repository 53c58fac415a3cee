[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "driftwatch"
version = "0.1.0"
description = "Thread-safe building blocks for filtering, tracking and reporting configuration drift in deployed services"
requires-python = ">=3.10"
keywords = ["drift", "configuration", "monitoring", "manifests", "alerting", "wsgi"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
    "Topic :: System :: Systems Administration",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
]
dependencies = [
    "pyyaml",
    "werkzeug",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["driftwatch"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
