import asyncio

import httpx
import pytest
from httpx import ASGITransport

from app.client.api import AuthClient, Err, FailureKind, Ok
from app.client.forms import LoginForm, RegisterForm, SubmissionInProgress, _Form, logout
from app.client.session import SessionStore


LOGIN_OK = {"token": "tok-1", "user": {"id": "u1", "name": "Jane", "email": "jane@x.com"}}


def mock_client(handler) -> AuthClient:
    return AuthClient(base_url="http://test", transport=httpx.MockTransport(handler))


async def test_login_ok():
    async with mock_client(lambda request: httpx.Response(200, json=LOGIN_OK)) as client:
        result = await client.login("jane@x.com", "secret1")

    assert isinstance(result, Ok)
    assert result.value.token == "tok-1"
    assert result.value.user.name == "Jane"


@pytest.mark.parametrize(
    "status, kind",
    [
        (400, FailureKind.VALIDATION),
        (401, FailureKind.AUTH),
        (409, FailureKind.CONFLICT),
        (500, FailureKind.INTERNAL),
    ],
)
async def test_server_errors_keep_message(status, kind):
    async with mock_client(lambda request: httpx.Response(status, json={"message": "nope"})) as client:
        result = await client.register("Jane", "jane@x.com", "secret1")
    assert result == Err(kind, "nope")


async def test_unreachable_server_is_connectivity_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with mock_client(handler) as client:
        result = await client.login("jane@x.com", "secret1")
    assert result.kind is FailureKind.CONNECTIVITY


async def test_timeout_is_connectivity_error():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    async with mock_client(handler) as client:
        result = await client.login("jane@x.com", "secret1")
    assert result.kind is FailureKind.CONNECTIVITY


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(502, text="<html>Bad Gateway</html>"),
        httpx.Response(401, json={"error": "no message field"}),
        httpx.Response(200, json={"token": "tok-1"}),
    ],
)
async def test_malformed_responses_are_connectivity_errors(response):
    async with mock_client(lambda request: response) as client:
        result = await client.login("jane@x.com", "secret1")
    assert result.kind is FailureKind.CONNECTIVITY


async def test_login_form_saves_session(session_cache):
    store = SessionStore(session_cache)
    form = LoginForm(email="jane@x.com", password="secret1", remember=True)

    async with mock_client(lambda request: httpx.Response(200, json=LOGIN_OK)) as client:
        result = await form.submit(client, session_cache)

    assert isinstance(result, Ok)
    assert store.current.token == "tok-1"
    assert store.display_label() == "Jane"
    assert session_cache.persistent.get_item("auth.token") == "tok-1"
    assert form.error == ""
    assert form.loading is False


async def test_login_form_without_remember_keeps_session_in_memory(session_cache):
    form = LoginForm(email="jane@x.com", password="secret1")
    async with mock_client(lambda request: httpx.Response(200, json=LOGIN_OK)) as client:
        await form.submit(client, session_cache)

    assert session_cache.read().token == "tok-1"
    assert session_cache.persistent.get_item("auth.token") is None


async def test_login_failure_keeps_email_and_clears_password(session_cache):
    form = LoginForm(email="jane@x.com", password="wrong1")
    async with mock_client(lambda request: httpx.Response(401, json={"message": "invalid credentials"})) as client:
        result = await form.submit(client, session_cache)

    assert result == Err(FailureKind.AUTH, "invalid credentials")
    assert form.error == "invalid credentials"
    assert form.email == "jane@x.com"
    assert form.password == ""
    assert session_cache.read() is None


async def test_login_form_rejects_second_submission_while_pending(session_cache):
    release = asyncio.Event()

    async def handler(request):
        await release.wait()
        return httpx.Response(200, json=LOGIN_OK)

    form = LoginForm(email="jane@x.com", password="secret1")
    async with mock_client(handler) as client:
        pending = asyncio.create_task(form.submit(client, session_cache))
        await asyncio.sleep(0)
        assert form.loading is True

        with pytest.raises(SubmissionInProgress):
            await form.submit(client, session_cache)

        release.set()
        result = await pending

    assert isinstance(result, Ok)
    assert form.loading is False


async def test_register_form_checks_before_sending():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(201, json=LOGIN_OK["user"])

    form = RegisterForm(name="Jane", email="jane@x.com", password="secret1", confirm_password="secret2")
    async with mock_client(handler) as client:
        result = await form.submit(client)

    assert isinstance(result, Err)
    assert form.error == "Passwords do not match."
    assert form.password == form.confirm_password == ""
    assert form.name == "Jane"
    assert calls == []


@pytest.mark.parametrize(
    "fields, message",
    [
        ({"name": "", "email": "jane@x.com", "password": "secret1"}, "Please fill in all fields."),
        ({"name": "Jane", "email": "jane", "password": "secret1"}, "Please enter a valid email address."),
        ({"name": "Jane", "email": "jane@x.com", "password": "ab"}, "Password must be at least 6 characters."),
    ],
)
async def test_register_form_validation(fields, message):
    form = RegisterForm(confirm_password=fields["password"], **fields)
    async with mock_client(lambda request: httpx.Response(500)) as client:
        await form.submit(client)
    assert form.error == message


async def test_register_then_login_end_to_end(asgi_app, session_cache):
    store = SessionStore(session_cache)
    async with AuthClient(base_url="http://test", transport=ASGITransport(app=asgi_app)) as client:
        register = RegisterForm(name="Jane", email="jane@x.com", password="secret1", confirm_password="secret1")
        registered = await register.submit(client)
        assert isinstance(registered, Ok)
        assert store.current is None

        again = RegisterForm(name="Jane", email="jane@x.com", password="secret1", confirm_password="secret1")
        duplicate = await again.submit(client)
        assert duplicate == Err(FailureKind.CONFLICT, "email already registered")
        assert again.error == "email already registered"

        login = LoginForm(email="jane@x.com", password="secret1", remember=True)
        result = await login.submit(client, session_cache)

    assert isinstance(result, Ok)
    assert result.value.user.id == registered.value.id
    assert store.current.token == result.value.token
    assert store.display_label() == "Jane"

    logout(session_cache)
    assert store.current is None


def test_form_base_is_abstract():
    with pytest.raises(TypeError):
        _Form()
