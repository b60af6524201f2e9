"""
Random password generation.
"""

import string
import secrets

from . import config


def generate_password(length: int = config.PASSWORD_GENERATOR_DEFAULT_LENGTH,
                      use_upper: bool = True,
                      use_lower: bool = True,
                      use_digits: bool = True,
                      use_symbols: bool = True,
                      exclude_ambiguous: bool = False) -> str:
    """
    Generate a password by sampling the selected character classes with the
    secrets module.

    Raises:
        ValueError: If length is out of range or no character class is selected
    """
    if not config.PASSWORD_GENERATOR_MIN_LENGTH <= length <= config.PASSWORD_GENERATOR_MAX_LENGTH:
        raise ValueError(
            f"Password length must be between {config.PASSWORD_GENERATOR_MIN_LENGTH} "
            f"and {config.PASSWORD_GENERATOR_MAX_LENGTH}"
        )

    chars = ""
    if use_upper:
        chars += string.ascii_uppercase
    if use_lower:
        chars += string.ascii_lowercase
    if use_digits:
        chars += string.digits
    if use_symbols:
        chars += config.PASSWORD_GENERATOR_SYMBOLS

    if exclude_ambiguous:
        chars = ''.join(c for c in chars if c not in config.PASSWORD_GENERATOR_AMBIGUOUS_CHARS)

    if not chars:
        raise ValueError("Select at least one character type")

    return ''.join(secrets.choice(chars) for _ in range(length))
