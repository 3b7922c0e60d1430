"""Property-based tests for JWT authentication.

**Feature: gst-letters, Property 11: Authentication Token Validity**
"""

import uuid
from datetime import datetime, timedelta

from hypothesis import given, settings, strategies as st

from app.modules.auth.jwt import (
    create_auth_tokens,
    create_token,
    decode_token,
    get_user_id_from_token,
)

# Strategy for generating valid UUIDs
uuid_strategy = st.uuids()


class TestJWTTokenValidity:
    """Property tests for JWT token validity."""

    @given(user_id=uuid_strategy)
    @settings(max_examples=100)
    def test_access_token_contains_correct_user_id(self, user_id: uuid.UUID) -> None:
        """**Feature: gst-letters, Property 11: Authentication Token Validity**

        For any user ID, an issued access token decodes to the same user ID.
        """
        tokens = create_auth_tokens(user_id)
        payload = decode_token(tokens.access_token)

        assert payload is not None, "Token should be decodable"
        assert payload.sub == str(user_id)
        assert payload.type == "access"
        assert get_user_id_from_token(tokens.access_token) == user_id

    @given(user_id=uuid_strategy)
    @settings(max_examples=100)
    def test_token_has_valid_expiration(self, user_id: uuid.UUID) -> None:
        """**Feature: gst-letters, Property 11: Authentication Token Validity**"""
        tokens = create_auth_tokens(user_id)
        payload = decode_token(tokens.access_token)
        assert payload is not None
        assert payload.exp > datetime.utcnow()
        assert tokens.expires_in > 0
        assert tokens.token_type == "bearer"

    @given(user_id=uuid_strategy)
    @settings(max_examples=100)
    def test_token_has_issued_at_timestamp(self, user_id: uuid.UUID) -> None:
        """**Feature: gst-letters, Property 11: Authentication Token Validity**"""
        before = datetime.utcnow()
        tokens = create_auth_tokens(user_id)
        after = datetime.utcnow()
        payload = decode_token(tokens.access_token)
        assert payload is not None
        assert payload.iat >= before - timedelta(seconds=1)
        assert payload.iat <= after + timedelta(seconds=1)

    @given(user_id=uuid_strategy)
    @settings(max_examples=50)
    def test_token_has_unique_jti(self, user_id: uuid.UUID) -> None:
        """**Feature: gst-letters, Property 11: Authentication Token Validity**"""
        first = decode_token(create_auth_tokens(user_id).access_token)
        second = decode_token(create_auth_tokens(user_id).access_token)
        assert first.jti != second.jti, "Each token should have a unique JTI"

    @given(user_id=uuid_strategy)
    @settings(max_examples=50)
    def test_expired_token_is_rejected(self, user_id: uuid.UUID) -> None:
        """**Feature: gst-letters, Property 11: Authentication Token Validity**"""
        token = create_token(user_id, timedelta(seconds=-5))
        assert get_user_id_from_token(token) is None

    @given(user_id=uuid_strategy)
    @settings(max_examples=50)
    def test_non_access_token_is_rejected(self, user_id: uuid.UUID) -> None:
        """**Feature: gst-letters, Property 11: Authentication Token Validity**"""
        token = create_token(user_id, timedelta(minutes=5), token_type="refresh")
        assert get_user_id_from_token(token) is None


class TestInvalidTokens:
    """Tests for invalid token handling."""

    def test_invalid_token_string_fails_decode(self) -> None:
        """Invalid token strings SHALL fail to decode."""
        for token in ["", "not-a-token", "a.b.c"]:
            assert decode_token(token) is None

    def test_tampered_token_fails_validation(self) -> None:
        """Tampered tokens SHALL fail validation."""
        tokens = create_auth_tokens(uuid.uuid4())
        tampered = tokens.access_token[:-5] + "XXXXX"
        assert get_user_id_from_token(tampered) is None
