"""Recognising the interpreter's shared library among a process's mapped files."""

from __future__ import annotations

import re
import sys

_UNIX_LIB_RE = re.compile(r"/libpython\d.\d(m|d|u)?.so")
_MAC_LIB_RE = re.compile(r"/libpython\d.\d(m|d|u)?.(dylib|so)$")
_WINDOWS_LIB_RE = re.compile(r"\\python\d\d(m|d|u)?.dll$")


def _platform_family(platform: str) -> str:
    if platform.startswith("linux") or platform.startswith("freebsd"):
        return "unix"
    if platform == "darwin":
        return "mac"
    if platform == "win32":
        return "windows"
    raise ValueError(f"unsupported platform {platform!r}")


def is_python_framework(pathname: str) -> bool:
    """Whether ``pathname`` is the library inside a macOS Python.framework."""
    return (
        pathname.endswith("/Python")
        and "/Python.framework/" in pathname
        and "Python.app" not in pathname
    )


def is_python_lib(pathname: str, platform: str | None = None) -> bool:
    """Whether ``pathname`` looks like a shared interpreter library.

    ``platform`` takes the values of ``sys.platform`` and defaults to it.
    """
    family = _platform_family(platform if platform is not None else sys.platform)
    if family == "unix":
        return _UNIX_LIB_RE.search(pathname) is not None
    if family == "mac":
        return _MAC_LIB_RE.search(pathname) is not None or is_python_framework(pathname)
    return _WINDOWS_LIB_RE.search(pathname) is not None