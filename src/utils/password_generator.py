"""Secure one-time password generation for temporary admin logins."""

import secrets
import string

from config import TEMP_ADMIN_PASSWORD_LENGTH

LOWERCASE = string.ascii_lowercase
UPPERCASE = string.ascii_uppercase
DIGITS = string.digits
SYMBOLS = "!@#$%^&*"

CHARACTER_CLASSES = (LOWERCASE, UPPERCASE, DIGITS, SYMBOLS)
ALPHABET = "".join(CHARACTER_CLASSES)

_random = secrets.SystemRandom()


def generate_secure_password(length: int = TEMP_ADMIN_PASSWORD_LENGTH) -> str:
    """Generate a random password with at least one character of each class.

    One character is drawn from each of lowercase, uppercase, digits and
    symbols, the rest from the combined alphabet, then the order is shuffled.

    Args:
        length: Password length; at least the number of character classes.

    Returns:
        The plaintext password. Callers must never persist it.
    """
    if length < len(CHARACTER_CLASSES):
        raise ValueError(f"length must be at least {len(CHARACTER_CLASSES)}")

    chars = [secrets.choice(charset) for charset in CHARACTER_CLASSES]
    chars.extend(secrets.choice(ALPHABET) for _ in range(length - len(chars)))
    _random.shuffle(chars)
    return "".join(chars)
