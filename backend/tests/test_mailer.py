"""Mail rendering and delivery retries."""
import smtplib

import pytest

from followups.mailer import SMTPMailer, render


def test_welcome_template_renders_all_blocks() -> None:
    subject, plain, html = render(
        "user_welcome.j2", {"user_id": 7, "activation_token": "ABCDEFGHIJKLMNOPQRSTUVWXYZ"}
    )

    assert subject == "Welcome to FollowUps!"
    assert "ABCDEFGHIJKLMNOPQRSTUVWXYZ" in plain
    assert "your user ID number is 7" in plain
    assert html.startswith("<!doctype html>")
    assert "ABCDEFGHIJKLMNOPQRSTUVWXYZ" in html


def test_reset_template_renders() -> None:
    subject, plain, _ = render("password_reset.j2", {"password_reset_token": "TOKEN"})
    assert "password" in subject.lower()
    assert "TOKEN" in plain


def make_mailer(retries: int = 3) -> SMTPMailer:
    return SMTPMailer(
        "localhost",
        2525,
        "",
        "",
        "FollowUps <noreply@example.com>",
        retries=retries,
        retry_delay=0,
    )


@pytest.mark.asyncio
async def test_send_retries_until_delivered(monkeypatch) -> None:
    mailer = make_mailer()
    attempts = []

    def deliver(message) -> None:
        attempts.append(message)
        if len(attempts) < 3:
            raise smtplib.SMTPServerDisconnected("try again")

    monkeypatch.setattr(mailer, "_deliver", deliver)
    await mailer.send("alice@x.com", "password_reset.j2", {"password_reset_token": "T"})

    assert len(attempts) == 3
    assert attempts[-1]["To"] == "alice@x.com"
    assert attempts[-1]["Subject"] == "Reset your FollowUps password"


@pytest.mark.asyncio
async def test_send_gives_up_after_retries(monkeypatch) -> None:
    mailer = make_mailer(retries=2)

    def deliver(message) -> None:
        raise ConnectionRefusedError()

    monkeypatch.setattr(mailer, "_deliver", deliver)
    with pytest.raises(ConnectionRefusedError):
        await mailer.send("alice@x.com", "password_reset.j2", {"password_reset_token": "T"})
