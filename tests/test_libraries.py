import pytest

from pyspy.libraries import is_python_framework, is_python_lib


@pytest.mark.parametrize(
    "path",
    [
        "~/Anaconda2/lib/libpython2.7.dylib",
        "/lib/libpython3.4d.dylib",
        "/usr/local/lib/libpython3.8m.dylib",
        "./libpython2.7u.dylib",
    ],
)
def test_mac_python_libs(path):
    assert is_python_lib(path, "darwin") is True


@pytest.mark.parametrize(
    "path",
    ["/libboost_python.dylib", "/lib/heapq.cpython-36m-darwin.dylib"],
)
def test_mac_non_python_libs(path):
    assert is_python_lib(path, "darwin") is False


@pytest.mark.parametrize(
    "path",
    [
        "/tmp/_MEIOqzg01/libpython2.7.so.1.0",
        "./libpython2.7.so",
        "/usr/lib/libpython3.4d.so",
        "/usr/local/lib/libpython3.8m.so",
        "/usr/lib/libpython2.7u.so",
    ],
)
def test_linux_python_libs(path):
    assert is_python_lib(path, "linux") is True


@pytest.mark.parametrize(
    "path",
    [
        "/usr/lib/libboost_python.so",
        "/usr/lib/x86_64-linux-gnu/libboost_python-py27.so.1.58.0",
        "/usr/lib/libboost_python-py35.so",
    ],
)
def test_linux_non_python_libs(path):
    assert is_python_lib(path, "linux") is False


def test_freebsd_uses_unix_rules():
    assert is_python_lib("/usr/local/lib/libpython3.6m.so", "freebsd12") is True
    assert is_python_lib("/usr/local/lib/libboost_python.so", "freebsd12") is False


def test_windows_python_libs():
    assert is_python_lib("C:\\Python37\\python37.dll", "win32") is True
    assert is_python_lib("C:\\Python37\\python37d.dll", "win32") is True
    assert is_python_lib("C:\\Python37\\boost_python.dll", "win32") is False
    assert is_python_lib("/usr/lib/libpython2.7.so", "win32") is False


def test_mac_accepts_frameworks():
    path = "/System/Library/Frameworks/Python.framework/Versions/2.7/Python"
    assert is_python_lib(path, "darwin") is True
    assert is_python_lib(path, "linux") is False


def test_unknown_platform_raises():
    with pytest.raises(ValueError):
        is_python_lib("/usr/lib/libpython2.7.so", "plan9")


@pytest.mark.parametrize(
    "path, expected",
    [
        (
            "/usr/local/Cellar/python@2/2.7.15_1/Frameworks/Python.framework/Versions/2.7/Resources/Python.app/Contents/MacOS/Python",
            False,
        ),
        ("/usr/local/Cellar/python@2/2.7.15_1/Frameworks/Python.framework/Versions/2.7/Python", True),
        (
            "/System/Library/Frameworks/Python.framework/Versions/2.7/Resources/Python.app/Contents/MacOS/Python",
            False,
        ),
        ("/System/Library/Frameworks/Python.framework/Versions/2.7/Python", True),
        ("/Users/ben/.pyenv/versions/3.6.6/Python.framework/Versions/3.6/Python", True),
        (
            "/Users/ben/.pyenv/versions/3.6.6/Python.framework/Versions/3.6/Resources/Python.app/Contents/MacOS/Python",
            False,
        ),
    ],
)
def test_python_frameworks(path, expected):
    assert is_python_framework(path) is expected