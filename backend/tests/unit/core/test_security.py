"""
Unit Tests for Security Module
Tests for: JWT access tokens
"""
import pytest
from datetime import timedelta
from jose import jwt
from fastapi import HTTPException

from app.core.security import create_access_token, decode_token
from app.core.config import settings


class TestAccessTokens:
    """Test JWT creation and decoding"""

    def test_round_trip(self):
        token = create_access_token({"sub": "user-1"})
        payload = decode_token(token)

        assert payload["sub"] == "user-1"
        assert payload["type"] == "access"
        assert "exp" in payload

    def test_expired_token_rejected(self):
        token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(seconds=-1))

        with pytest.raises(HTTPException) as exc_info:
            decode_token(token)
        assert exc_info.value.status_code == 401

    def test_foreign_signature_rejected(self):
        token = jwt.encode({"sub": "user-1", "type": "access"}, "other-secret", algorithm=settings.JWT_ALGORITHM)

        with pytest.raises(HTTPException) as exc_info:
            decode_token(token)
        assert exc_info.value.status_code == 401

    def test_garbage_rejected(self):
        with pytest.raises(HTTPException):
            decode_token("not-a-token")
