"""Unit tests for random identifier generation."""

import pytest

from app.config.constants import (
    EXTERNAL_PAYMENT_ID_ALPHABET,
    EXTERNAL_PAYMENT_ID_LENGTH,
    INVITE_CODE_ALPHABET,
    INVITE_CODE_LENGTH,
)
from app.utils.code_generator import (
    generate_external_payment_id,
    generate_invite_code,
    random_string,
)


class TestCodeGenerator:
    """Tests for invite codes and external payment ids."""

    def test_invite_code_format(self):
        """Default invite code has the configured length and alphabet."""
        code = generate_invite_code()
        assert len(code) == INVITE_CODE_LENGTH
        assert set(code) <= set(INVITE_CODE_ALPHABET)

    def test_invite_code_custom_length(self):
        """Length is configurable."""
        assert len(generate_invite_code(16)) == 16

    def test_external_payment_id_format(self):
        """Payment ids are URL-safe."""
        payment_id = generate_external_payment_id()
        assert len(payment_id) == EXTERNAL_PAYMENT_ID_LENGTH
        assert set(payment_id) <= set(EXTERNAL_PAYMENT_ID_ALPHABET)

    def test_codes_differ(self):
        """Consecutive codes are not repeated."""
        codes = {generate_invite_code() for _ in range(50)}
        assert len(codes) == 50

    @pytest.mark.parametrize("length", [0, -1])
    def test_non_positive_length(self, length):
        """Zero or negative length is rejected."""
        with pytest.raises(ValueError):
            random_string("ab", length)
