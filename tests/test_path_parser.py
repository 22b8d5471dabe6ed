import pytest

from taios.config import MAX_PATH_LENGTH
from taios.errors import ErrorCode, KernelError
from taios.path_parser import PathRoot, parse_path


def test_parse_example_path():
    root = parse_path("0:/bin/sh.exe")
    assert root == PathRoot(drive_number=0, parts=["bin", "sh.exe"])


def test_parse_other_drive():
    root = parse_path("7:/hello.txt")
    assert root.drive_number == 7
    assert root.parts == ["hello.txt"]


def test_root_only():
    root = parse_path("0:/")
    assert root.parts == []
    assert root.is_root


def test_trailing_slash_ignored():
    assert parse_path("0:/dir/").parts == ["dir"]


def test_empty_part_stops_parsing():
    assert parse_path("0:/a//b").parts == ["a"]


def test_current_directory_does_not_change_result():
    assert parse_path("0:/a/b", "0:/x") == parse_path("0:/a/b")


@pytest.mark.parametrize("path", ["a:/x", "0:x", "0/", "", "0:", "x"])
def test_invalid_format(path):
    with pytest.raises(KernelError) as info:
        parse_path(path)
    assert info.value.code is ErrorCode.EINVPATH


def test_too_long_rejected():
    path = "0:/" + "a" * MAX_PATH_LENGTH
    with pytest.raises(KernelError) as info:
        parse_path(path)
    assert info.value.code is ErrorCode.EINVPATH


def test_max_length_accepted():
    name = "a" * (MAX_PATH_LENGTH - 3)
    assert parse_path("0:/" + name).parts == [name]