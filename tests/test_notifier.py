import pytest

from app import notifier as notifier_module
from app.notifier import Message, NullNotifier, ResendNotifier, booking_confirmation


@pytest.mark.asyncio
async def test_resend_notifier_sends(monkeypatch):
    sent = []
    monkeypatch.setattr(notifier_module.resend.Emails, "send", lambda params: sent.append(params) or {"id": "m1"})

    ok = await ResendNotifier("re_test", "Studio <a@b.c>").send(Message(to="x@y.z", subject="S", html="<p>h</p>"))

    assert ok is True
    assert sent[0]["to"] == ["x@y.z"]
    assert sent[0]["from"] == "Studio <a@b.c>"


@pytest.mark.asyncio
async def test_resend_notifier_reports_failure(monkeypatch):
    def boom(params):
        raise RuntimeError("quota")

    monkeypatch.setattr(notifier_module.resend.Emails, "send", boom)

    assert await ResendNotifier("re_test", "a@b.c").send(Message(to="x@y.z", subject="S", html="")) is False


@pytest.mark.asyncio
async def test_null_notifier():
    assert await NullNotifier().send(Message(to="x@y.z", subject="S", html="")) is False


def test_booking_confirmation_escapes_html():
    message = booking_confirmation("x@y.z", "<b>Ana</b> - Corte", {"dateTime": "2025-06-10T14:00:00+01:00"}, "Rui")

    assert "&lt;b&gt;Ana&lt;/b&gt;" in message.html
    assert "2025-06-10T14:00:00+01:00" in message.html
    assert "Rui" in message.html
