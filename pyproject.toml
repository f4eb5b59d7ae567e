[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "journeysapi"
version = "1.0.0"
description = "HTTP API serving public transport timetables (lines, routes, journeys, stop points) from a GTFS feed"
readme = { text = "A read-only JSON HTTP API over a GTFS timetable feed.", content-type = "text/plain" }
requires-python = ">=3.10"
dependencies = []
keywords = ["gtfs", "public transport", "timetable", "journeys", "http api", "wsgi"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
journeys = "journeysapi.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["journeysapi"]

[tool.hatch.build.targets.sdist]
include = ["journeysapi", "tests", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
