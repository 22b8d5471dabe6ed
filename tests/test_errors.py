import pytest

from taios.errors import ErrorCode, KernelError


def test_error_keeps_code():
    err = KernelError(ErrorCode.EIO)
    assert err.code is ErrorCode.EIO


def test_error_from_plain_int():
    err = KernelError(4)
    assert err.code is ErrorCode.EINVPATH


def test_status_is_negated_code():
    assert KernelError(ErrorCode.ENOMEM).status == -int(ErrorCode.ENOMEM)
    assert KernelError(ErrorCode.ETOOMANYARGS).status == -int(ErrorCode.ETOOMANYARGS)


def test_default_message_is_code_name():
    assert str(KernelError(ErrorCode.EREADONLY)) == "EREADONLY"


def test_custom_message():
    assert str(KernelError(ErrorCode.EIO, "disk failed")) == "disk failed"


def test_all_ok_is_not_an_error():
    with pytest.raises(ValueError):
        KernelError(ErrorCode.ALL_OK)


def test_unknown_code_rejected():
    with pytest.raises(ValueError):
        KernelError(999)


@pytest.mark.parametrize(
    "number, name, status",
    [(1, "EIO", -1), (8, "EPAGEFAULT", -8), (13, "ETOOMANYARGS", -13)],
)
def test_status_values_fixed_by_format(number, name, status):
    err = KernelError(number)
    assert err.code.name == name
    assert err.status == status