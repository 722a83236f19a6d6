from nacl.signing import SigningKey
import pytest

from rektsafe.auth.solana_keys import (
    decode_address,
    encode_address,
    encode_signature,
    is_valid_solana_address,
    shorten_address,
    verify_solana_signature,
)


MESSAGE = b"Welcome to RektSafe. For Cypherpunks, By Cypherpunks"


def test_address_encoding_handles_leading_zero_bytes() -> None:
    assert encode_address(bytes(32)) == "1" * 32
    assert decode_address("1" * 32) == bytes(32)


def test_known_program_id_decodes_to_public_key() -> None:
    program_id = "namesLPneVptA9Z5rqUDD9tMTWEJwofgaYwp8cawRkX"
    decoded = decode_address(program_id)
    assert len(decoded) == 32
    assert encode_address(decoded) == program_id


def test_decode_address_rejects_invalid_input() -> None:
    with pytest.raises(ValueError):
        decode_address("O0lI")
    with pytest.raises(ValueError):
        decode_address("1" * 31)


def test_signature_encodes_as_base58() -> None:
    signature = SigningKey.generate().sign(MESSAGE).signature
    encoded = encode_signature(signature)

    assert 80 <= len(encoded) <= 88
    assert all(ch not in encoded for ch in "0OIl")


def test_address_validation() -> None:
    address = encode_address(bytes(SigningKey.generate().verify_key))
    assert is_valid_solana_address(address) is True
    assert is_valid_solana_address("") is False
    assert is_valid_solana_address("O0lNotBase58") is False
    assert is_valid_solana_address("1" * 31) is False


def test_verify_solana_signature_accepts_valid_signature() -> None:
    signing_key = SigningKey.generate()
    signature = signing_key.sign(MESSAGE).signature

    verify_solana_signature(MESSAGE, signature, bytes(signing_key.verify_key))


def test_verify_solana_signature_rejects_other_signer() -> None:
    signing_key = SigningKey.generate()
    other_key = SigningKey.generate()
    signature = other_key.sign(MESSAGE).signature

    with pytest.raises(ValueError):
        verify_solana_signature(MESSAGE, signature, bytes(signing_key.verify_key))


def test_verify_solana_signature_rejects_bad_lengths() -> None:
    signing_key = SigningKey.generate()
    signature = signing_key.sign(MESSAGE).signature

    with pytest.raises(ValueError):
        verify_solana_signature(MESSAGE, signature[:32], bytes(signing_key.verify_key))
    with pytest.raises(ValueError):
        verify_solana_signature(MESSAGE, signature, b"short")


def test_shorten_address() -> None:
    address = "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"
    assert shorten_address(address) == "9xQeWv...VFin"
    assert shorten_address(address, 4, 4) == "9xQe...VFin"
    assert shorten_address("short") == "short"
