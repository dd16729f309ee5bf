[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "scryptfile"
version = "1.0.0"
description = "Password-based buffer and stream encryption in the scrypt file format"
requires-python = ">=3.10"
dependencies = [
    "cryptography",
    "humanize",
]
keywords = ["scrypt", "kdf", "encryption", "password", "aes", "hmac", "pbkdf2"]
classifiers = [
    "Development Status :: 5 - Production/Stable",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security :: Cryptography",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["scryptfile"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
