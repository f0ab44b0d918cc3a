"""
tests/test_shortcodes.py
========================
"""

import pytest

from billview.shortcodes import SHORT_CODE_ALPHABET, SHORT_CODE_LENGTH, generate_short_code


def test_default_length_and_alphabet():
    code = generate_short_code()
    assert len(code) == SHORT_CODE_LENGTH
    assert set(code) <= set(SHORT_CODE_ALPHABET)


def test_no_lookalike_characters():
    assert not set("0O1lIio") & set(SHORT_CODE_ALPHABET)


def test_custom_length():
    assert len(generate_short_code(10)) == 10


def test_zero_length_rejected():
    with pytest.raises(ValueError):
        generate_short_code(0)
