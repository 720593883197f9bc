import pytest

from app.services import mailer
from app.services.mailer import send_password_reset
from app.services.errors import ExternalServiceError
from app.tasks import mail_tasks


class FakeSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, username, password):
        pass

    def send_message(self, message):
        FakeSMTP.sent.append(message)


def test_reset_email_links_to_site():
    html = mailer.render_reset_email("abc123")
    assert "http://testserver/auth/reset-password/abc123" in html
    assert "60 minutes" in html


def test_build_message_has_html_part():
    message = mail_tasks.build_message("s@example.com", "Hello", "<p>Hi</p>")
    assert message["To"] == "s@example.com"
    assert message["Subject"] == "Hello"
    html = message.get_body(preferencelist=("html",))
    assert "<p>Hi</p>" in html.get_content()


def test_send_email_task(monkeypatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(mail_tasks.smtplib, "SMTP", FakeSMTP)

    result = mail_tasks.send_email.run("s@example.com", "Subject", "<p>Body</p>")

    assert result == {"sent": "s@example.com"}
    assert [m["To"] for m in FakeSMTP.sent] == ["s@example.com"]


def test_queue_failure_becomes_external_service_error(monkeypatch):
    def broken_delay(*args, **kwargs):
        raise ConnectionError("broker down")

    monkeypatch.setattr(mail_tasks.send_email, "delay", broken_delay)
    with pytest.raises(ExternalServiceError):
        send_password_reset("s@example.com", "token")
