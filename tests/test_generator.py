# Tests for the password generator

import string

import pytest

from lockbox import config
from lockbox.generator import generate_password


class TestGeneratePassword:
    def test_default_length(self):
        assert len(generate_password()) == config.PASSWORD_GENERATOR_DEFAULT_LENGTH

    @pytest.mark.parametrize("length", [
        config.PASSWORD_GENERATOR_MIN_LENGTH,
        32,
        config.PASSWORD_GENERATOR_MAX_LENGTH,
    ])
    def test_requested_length(self, length):
        assert len(generate_password(length)) == length

    @pytest.mark.parametrize("length", [0, config.PASSWORD_GENERATOR_MIN_LENGTH - 1,
                                        config.PASSWORD_GENERATOR_MAX_LENGTH + 1])
    def test_length_out_of_range(self, length):
        with pytest.raises(ValueError):
            generate_password(length)

    def test_no_character_class(self):
        with pytest.raises(ValueError):
            generate_password(16, use_upper=False, use_lower=False, use_digits=False, use_symbols=False)

    def test_digits_only(self):
        password = generate_password(64, use_upper=False, use_lower=False, use_symbols=False)
        assert set(password) <= set(string.digits)

    def test_symbols_only(self):
        password = generate_password(64, use_upper=False, use_lower=False, use_digits=False)
        assert set(password) <= set(config.PASSWORD_GENERATOR_SYMBOLS)

    def test_all_classes_draw_from_union(self):
        allowed = set(string.ascii_letters + string.digits + config.PASSWORD_GENERATOR_SYMBOLS)
        assert set(generate_password(128)) <= allowed

    def test_exclude_ambiguous(self):
        for _ in range(20):
            password = generate_password(128, exclude_ambiguous=True)
            assert not set(password) & set(config.PASSWORD_GENERATOR_AMBIGUOUS_CHARS)

    def test_passwords_differ(self):
        assert generate_password(32) != generate_password(32)
