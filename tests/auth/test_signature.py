from types import SimpleNamespace

import pytest

from rektsafe.auth.models import MalformedSignatureError
from rektsafe.auth.signature import normalize_signature


SIGNATURE = bytes(range(64))


def test_raw_bytes_are_returned_unchanged() -> None:
    assert normalize_signature(SIGNATURE) == SIGNATURE


def test_bytearray_and_memoryview_become_bytes() -> None:
    assert normalize_signature(bytearray(SIGNATURE)) == SIGNATURE
    result = normalize_signature(memoryview(SIGNATURE))
    assert isinstance(result, bytes)
    assert result == SIGNATURE


def test_wrapper_object_exposes_signature() -> None:
    wrapped = SimpleNamespace(signature=SIGNATURE, public_key="ignored")
    assert normalize_signature(wrapped) == SIGNATURE


def test_wrapper_mapping_exposes_signature() -> None:
    assert normalize_signature({"signature": bytearray(SIGNATURE)}) == SIGNATURE


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "base58-signature",
        123,
        object(),
        {"sig": SIGNATURE},
        SimpleNamespace(signature="not-bytes"),
        {"signature": None},
    ],
)
def test_unrecognized_shapes_are_malformed(raw) -> None:
    with pytest.raises(MalformedSignatureError):
        normalize_signature(raw)
