"""Shared fixtures for the contact service tests."""

import json
import smtplib
import time

import httpx
import pytest

from contact_api.core.config import Settings
from contact_api.models.contact import ContactSubmission
from contact_api.services import mailer
from contact_api.services.spreadsheet import token_cache


BASE_SETTINGS = {
    "ms365_tenant_id": "tenant-123",
    "ms365_client_id": "client-abc",
    "ms365_client_secret": "s3cret",
    "ms365_user_upn": "owner@agency.test",
    "excel_file_path": "Leads/contact form.xlsx",
    "excel_table_name": "Table1",
    "SMTP_HOST": "smtp.agency.test",
    "SMTP_PORT": 587,
    "SMTP_USER": "hello@agency.test",
    "SMTP_PASS": "mail-pass",
    "mail_to_owner": "owner@agency.test",
    "booking_link": "https://book.agency.test/call",
    "delivery_timeout_seconds": 5.0,
}


@pytest.fixture
def make_settings():
    def factory(**overrides):
        values = dict(BASE_SETTINGS)
        values.update(overrides)
        return Settings(_env_file=None, **values)
    return factory


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture(autouse=True)
def clear_token_cache():
    token_cache.clear()
    yield
    token_cache.clear()


@pytest.fixture
def submission():
    return ContactSubmission(
        name="Jane",
        email="jane@x.com",
        message="Hi",
        hasWebsite=True,
        website="https://jane.example",
        submittedAt="2026-10-19T12:00:00+00:00",
        source="home-modal",
        timeSpentMs=5234,
        userAgent="pytest-agent",
        page="/",
        ip="203.0.113.7",
    )


class GraphStub:
    """httpx.MockTransport handler standing in for login.microsoftonline.com and Graph"""

    def __init__(self, token_status=200, append_status=201, token_body=None):
        self.token_status = token_status
        self.append_status = append_status
        self.token_body = token_body or {"access_token": "token-1", "expires_in": 3600}
        self.requests = []

    @property
    def token_requests(self):
        return [r for r in self.requests if r.url.host == "login.microsoftonline.com"]

    @property
    def append_requests(self):
        return [r for r in self.requests if r.url.host == "graph.microsoft.com"]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "login.microsoftonline.com":
            if self.token_status != 200:
                return httpx.Response(self.token_status, text="invalid_client")
            return httpx.Response(200, json=self.token_body)
        if self.append_status >= 400:
            return httpx.Response(self.append_status, text="ItemNotFound")
        return httpx.Response(self.append_status, json={"index": 0})

    def transport(self):
        return httpx.MockTransport(self)

    def appended_values(self, index=-1):
        return json.loads(self.append_requests[index].content)["values"]


@pytest.fixture
def graph():
    return GraphStub()


class FakeSMTP:
    """Records connections and messages instead of talking to a relay"""

    instances = []
    fail_login = False
    fail_recipients = ()
    login_delay = 0.0

    def __init__(self, host, port, timeout=None, context=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.started_tls = False
        self.logged_in = None
        self.sent = []
        self.closed = False
        FakeSMTP.instances.append(self)

    def starttls(self, context=None):
        self.started_tls = True

    def login(self, user, password):
        if FakeSMTP.login_delay:
            time.sleep(FakeSMTP.login_delay)
        if FakeSMTP.fail_login:
            raise smtplib.SMTPAuthenticationError(535, b"5.7.3 Authentication unsuccessful")
        self.logged_in = (user, password)

    def noop(self):
        return (250, b"OK")

    def send_message(self, message):
        if message["To"] in FakeSMTP.fail_recipients:
            raise smtplib.SMTPRecipientsRefused({message["To"]: (550, b"mailbox unavailable")})
        self.sent.append(message)

    def quit(self):
        self.closed = True

    def close(self):
        self.closed = True

    @classmethod
    def all_sent(cls):
        return [message for instance in cls.instances for message in instance.sent]


class FakeSMTPSSL(FakeSMTP):
    pass


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.fail_login = False
    FakeSMTP.fail_recipients = ()
    FakeSMTP.login_delay = 0.0
    monkeypatch.setattr(mailer.smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(mailer.smtplib, "SMTP_SSL", FakeSMTPSSL)
    yield FakeSMTP
    FakeSMTP.instances = []
