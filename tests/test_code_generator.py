"""Tests for the verification code generator."""

import pytest

from phone_verification.services.code_generator import generate_code


def test_default_code_is_six_digits():
    for _ in range(200):
        code = generate_code()
        assert len(code) == 6
        assert code.isdigit()


def test_custom_length():
    assert len(generate_code(8)) == 8


def test_codes_vary():
    assert len({generate_code() for _ in range(50)}) > 1


def test_invalid_length():
    with pytest.raises(ValueError):
        generate_code(0)
