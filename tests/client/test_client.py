"""
API client tests.

The HTTP session is mocked; tests check request shape, token handling, and
envelope unwrapping.
"""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest
import requests

from therapease.client import ApiError, AuthContext, TherapeaseClient


def _response(status=200, body=None, reason="OK"):
    response = MagicMock()
    response.status_code = status
    response.reason = reason
    if body is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = body
    return response


@pytest.fixture()
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture()
def client(session):
    return TherapeaseClient("http://api.test/", session=session, timeout=5)


def _call(session):
    args, kwargs = session.request.call_args
    return args[0], args[1], kwargs


class TestTransport:

    def test_unwraps_data(self, client, session):
        session.request.return_value = _response(body={"success": True, "data": {"id": "1"}})
        assert client.me() == {"id": "1"}

        method, url, kwargs = _call(session)
        assert (method, url) == ("GET", "http://api.test/auth/me")
        assert kwargs["headers"] == {}
        assert kwargs["timeout"] == 5

    def test_failure_envelope_raises(self, client, session):
        session.request.return_value = _response(403, {"success": False, "message": "Cannot ban admin users"})

        with pytest.raises(ApiError) as excinfo:
            client.me()

        assert excinfo.value.status == 403
        assert excinfo.value.message == "Cannot ban admin users"

    def test_non_json_error_uses_reason(self, client, session):
        session.request.return_value = _response(502, reason="Bad Gateway")
        with pytest.raises(ApiError, match="Bad Gateway"):
            client.me()

    def test_transport_error(self, client, session):
        session.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(ApiError) as excinfo:
            client.me()
        assert excinfo.value.status == 0

    def test_none_params_dropped(self, client, session):
        session.request.return_value = _response(body={"success": True, "data": {"items": []}})
        client.list_journals(mood="good")
        assert _call(session)[2]["params"] == {"page": 1, "limit": 10, "mood": "good"}


class TestAuthContext:

    def test_login_stores_token_and_sends_it(self, client, session):
        session.request.return_value = _response(body={
            "success": True,
            "data": {"token": "abc", "account": {"email": "a@example.com"}},
        })

        account = client.login("a@example.com", "Secret123")

        assert account == {"email": "a@example.com"}
        assert client.auth.is_authenticated

        session.request.return_value = _response(body={"success": True, "data": {}})
        client.journal_stats()
        assert _call(session)[2]["headers"] == {"Authorization": "Bearer abc"}

    def test_register_defaults_to_user(self, client, session):
        session.request.return_value = _response(201, {"success": True, "data": {"token": "t", "account": {}}})
        client.register(name="Asha", email="a@example.com", password="Secret123")
        assert _call(session)[2]["json"]["role"] == "user"

    def test_logout_clears_token_even_on_error(self, session):
        client = TherapeaseClient("http://api.test", auth=AuthContext(token="abc"), session=session)
        session.request.side_effect = requests.Timeout("slow")

        with pytest.raises(ApiError):
            client.logout()

        assert client.auth.token is None

    def test_clients_do_not_share_tokens(self, session):
        first = TherapeaseClient("http://api.test", session=session)
        second = TherapeaseClient("http://api.test", session=session)
        first.auth.token = "abc"
        assert second.auth.headers() == {}


class TestEndpoints:

    def test_flag_without_reason_sends_no_body(self, client, session):
        session.request.return_value = _response(body={"success": True, "data": {"flag_count": 1}})
        post_id = uuid4()

        client.flag(post_id)

        method, url, kwargs = _call(session)
        assert (method, url) == ("POST", f"http://api.test/posts/flag/{post_id}")
        assert kwargs["json"] is None

    def test_create_post(self, client, session):
        session.request.return_value = _response(201, {"success": True, "data": {"id": "p"}})
        client.create_post("Hello", anonymous=True)
        assert _call(session)[2]["json"] == {"content": "Hello", "anonymous": True}

    def test_contact_therapist(self, client, session):
        session.request.return_value = _response(201, {"success": True, "data": {"status": "pending"}})
        therapist_id = uuid4()

        result = client.contact_therapist(therapist_id, "Hi", {"email": "me@example.com"})

        assert result == {"status": "pending"}
        method, url, kwargs = _call(session)
        assert url == f"http://api.test/therapists/contact/{therapist_id}"
        assert kwargs["json"] == {"message": "Hi", "contact_info": {"email": "me@example.com"}}

    def test_delete_returns_none(self, client, session):
        session.request.return_value = _response(body={"success": True, "data": None, "message": "deleted"})
        assert client.delete_post(uuid4()) is None
