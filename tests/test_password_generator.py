import pytest

from utils.password_generator import (
    DIGITS,
    LOWERCASE,
    SYMBOLS,
    UPPERCASE,
    generate_secure_password,
)


@pytest.mark.parametrize("attempt", range(50))
def test_generated_password_has_every_character_class(attempt):
    password = generate_secure_password()

    assert len(password) == 16
    assert any(c in LOWERCASE for c in password)
    assert any(c in UPPERCASE for c in password)
    assert any(c in DIGITS for c in password)
    assert any(c in SYMBOLS for c in password)
    assert all(c in LOWERCASE + UPPERCASE + DIGITS + SYMBOLS for c in password)


def test_passwords_are_not_repeated():
    passwords = {generate_secure_password() for _ in range(20)}
    assert len(passwords) == 20


def test_custom_length():
    assert len(generate_secure_password(24)) == 24


def test_length_below_class_count_is_rejected():
    with pytest.raises(ValueError):
        generate_secure_password(3)
