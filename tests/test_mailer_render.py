import pytest

from adops.services import mailer


def test_welcome_template() -> None:
    subject, text, html = mailer.render(
        "welcome",
        {"name": "Ann", "account_name": "Acme", "login_url": "https://app/login", "email": "ann@acme.io"},
    )
    assert subject == "Welcome to Acme"
    assert "Sign in at https://app/login with ann@acme.io" in text
    assert html.startswith("<p>Hi Ann,</p>")


def test_missing_values_render_empty() -> None:
    subject, text, _ = mailer.render("password_reset", {"name": "Ann", "reset_url": None})
    assert subject == "Reset your password"
    assert text.endswith("reset your password: ")


def test_html_is_escaped() -> None:
    _, _, html = mailer.render("notification", {"subject": "Hi", "body": "<script>x</script>"})
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_unknown_template() -> None:
    with pytest.raises(ValueError, match="Unknown email template"):
        mailer.render("nope", {})


@pytest.mark.asyncio
async def test_send_builds_message(monkeypatch) -> None:
    captured = {}

    async def _send(message, **kwargs):
        captured["message"] = message
        captured["kwargs"] = kwargs

    monkeypatch.setattr(mailer.aiosmtplib, "send", _send)

    await mailer.send("ann@acme.io", "notification", {"subject": "Report ready", "body": "See dashboard"})

    message = captured["message"]
    assert message["To"] == "ann@acme.io"
    assert message["Subject"] == "Report ready"
    assert captured["kwargs"]["hostname"] == mailer.settings.smtp_host
