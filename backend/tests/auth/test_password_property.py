"""Property-based tests for password hashing and the registration policy.

**Feature: gst-letters, Property 12: Password Handling**
"""

import string

import pytest
from hypothesis import given, settings, strategies as st
from pydantic import ValidationError

from app.modules.auth.models import hash_password, verify_password
from app.modules.auth.schemas import RegisterRequest

upper = st.sampled_from(string.ascii_uppercase)
lower = st.sampled_from(string.ascii_lowercase)
digit = st.sampled_from(string.digits)

valid_password_strategy = st.builds(
    lambda u, l, d, rest: u + l + d + rest,
    upper, lower, digit,
    st.text(alphabet=string.ascii_letters + string.digits + "!@#$%^&*", min_size=5, max_size=17),
)
no_uppercase_strategy = st.builds(
    lambda l, d, rest: l + d + rest,
    lower, digit,
    st.text(alphabet=string.ascii_lowercase + string.digits, min_size=6, max_size=18),
)
no_digit_strategy = st.builds(
    lambda u, l, rest: u + l + rest,
    upper, lower,
    st.text(alphabet=string.ascii_letters, min_size=6, max_size=18),
)


class TestPasswordPolicy:
    """**Feature: gst-letters, Property 12: Password Handling**"""

    @given(password=valid_password_strategy)
    @settings(max_examples=100)
    def test_valid_password_accepted(self, password: str) -> None:
        request = RegisterRequest(email="ca@example.com", password=password)
        assert request.password == password

    @given(password=no_uppercase_strategy)
    @settings(max_examples=50)
    def test_no_uppercase_rejected(self, password: str) -> None:
        with pytest.raises(ValidationError, match="uppercase"):
            RegisterRequest(email="ca@example.com", password=password)

    @given(password=no_digit_strategy)
    @settings(max_examples=50)
    def test_no_digit_rejected(self, password: str) -> None:
        with pytest.raises(ValidationError, match="number"):
            RegisterRequest(email="ca@example.com", password=password)

    def test_short_password_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(email="ca@example.com", password="Ab1")


class TestPasswordHashing:
    """**Feature: gst-letters, Property 12: Password Handling**"""

    @given(password=valid_password_strategy)
    @settings(max_examples=5, deadline=None)
    def test_password_verification_succeeds_for_correct_password(self, password: str) -> None:
        hashed = hash_password(password)
        assert hashed != password
        assert verify_password(password, hashed)

    @given(password=valid_password_strategy, wrong_password=valid_password_strategy)
    @settings(max_examples=5, deadline=None)
    def test_password_verification_fails_for_wrong_password(self, password: str, wrong_password: str) -> None:
        if password == wrong_password:
            return
        hashed = hash_password(password)
        assert not verify_password(wrong_password, hashed)

    @given(password=valid_password_strategy)
    @settings(max_examples=3, deadline=None)
    def test_same_password_produces_different_hashes(self, password: str) -> None:
        assert hash_password(password) != hash_password(password)
