"""
Unit Tests for the ShareCase error taxonomy
"""
import httpx

from app.core.exceptions import (
    ShareCaseError,
    NotFoundError,
    UserNotFoundError,
    IdentityNotFoundError,
    SelfFollowError,
    InvalidAmountError,
    DocumentInitError,
    AssetError,
    AssetUnavailableError,
    AssetFetchError,
    error_response,
)


class TestErrorCodes:
    """Codes and HTTP status mapping"""

    def test_not_found_family(self):
        err = UserNotFoundError("abc")
        assert isinstance(err, NotFoundError)
        assert err.status_code == 404
        assert "abc" in err.message

    def test_identity_not_found(self):
        err = IdentityNotFoundError("ghost")
        assert isinstance(err, NotFoundError)
        assert err.status_code == 404

    def test_self_follow(self):
        err = SelfFollowError("u1")
        assert err.code == "SELF_FOLLOW"
        assert err.status_code == 400

    def test_invalid_amount(self):
        err = InvalidAmountError(-5)
        assert err.code == "INVALID_AMOUNT"
        assert err.status_code == 400

    def test_document_init(self):
        err = DocumentInitError()
        assert err.code == "DOCUMENT_INIT_FAILED"
        assert err.status_code == 500

    def test_asset_errors_share_a_base(self):
        unavailable = AssetUnavailableError("https://img.test/a.png", 404)
        failed = AssetFetchError("https://img.test/b.png", httpx.ConnectError("refused"))
        assert isinstance(unavailable, AssetError)
        assert isinstance(failed, AssetError)
        assert unavailable.http_status == 404
        assert unavailable.url == "https://img.test/a.png"


class TestErrorResponse:
    """JSON envelope returned by the API"""

    def test_envelope(self):
        body = error_response(UserNotFoundError("abc"))
        assert body["success"] is False
        assert body["error"]["code"] == UserNotFoundError("abc").code
        assert "message" in body["error"]

    def test_all_errors_are_sharecase_errors(self):
        for err in (UserNotFoundError("x"), SelfFollowError("x"), DocumentInitError()):
            assert isinstance(err, ShareCaseError)
