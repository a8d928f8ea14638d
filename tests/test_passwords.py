"""Unit tests for auth/passwords.py -- argon2id hashing and verification."""

from argon2 import PasswordHasher

from auth.passwords import hash_password, needs_rehash, verify_password


def test_hash_is_argon2id_and_salted():
    first = hash_password("secret1")
    second = hash_password("secret1")
    assert first.startswith("$argon2id$")
    assert first != second, "each hash must draw a fresh salt"


def test_verify():
    hashed = hash_password("secret1")
    assert verify_password("secret1", hashed) is True
    assert verify_password("secret2", hashed) is False
    assert verify_password("", hashed) is False


def test_verify_malformed_hash_is_false():
    assert verify_password("secret1", "not-a-hash") is False
    assert verify_password("secret1", "") is False


def test_hash_from_other_parameters_verifies_and_needs_rehash():
    legacy = PasswordHasher(time_cost=2, memory_cost=2048, parallelism=1).hash("secret1")
    assert verify_password("secret1", legacy) is True
    assert needs_rehash(legacy) is True
    assert needs_rehash(hash_password("secret1")) is False
