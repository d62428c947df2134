"""
Tests for typed system settings, secret masking and the SMTP test message.
"""
import asyncio
import json

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from conftest import auth_headers
from core.security import decrypt_secret
from models.models import Setting
from schemas.system_settings import EmailSettings
from services import email_service, settings_service


def settings_document(**email):
    document = {
        "general": {
            "siteName": "Refactorium",
            "siteDescription": "Learn refactoring",
            "siteUrl": "https://refactorium.example.com",
            "maintenanceMode": False,
            "maxUsers": 1000,
            "maxSmells": 500,
        },
        "email": {
            "smtpHost": "smtp.example.com",
            "smtpPort": 587,
            "smtpUser": "mailer",
            "smtpPassword": "s3cret",
            "fromEmail": "noreply@example.com",
            "fromName": "Refactorium",
            "enabled": True,
        },
        "security": {
            "sessionTimeout": 24,
            "maxLoginAttempts": 5,
            "requireEmailVerification": True,
            "allowRegistration": True,
            "passwordMinLength": 8,
        },
        "features": {
            "enableAnalytics": True,
            "enableNotifications": True,
            "enableComments": False,
            "enableRatings": True,
            "enableSharing": True,
        },
        "appearance": {"theme": "dark", "primaryColor": "green", "logoUrl": "", "faviconUrl": ""},
    }
    document["email"].update(email)
    return document


def stored_password(engine):
    with Session(engine) as session:
        value = session.execute(select(Setting.value).where(Setting.key == "email.smtpPassword")).scalar_one()
    return json.loads(value)


def test_defaults_before_anything_is_saved(client, moderator):
    response = client.get("/admin/settings", headers=auth_headers(moderator))

    assert response.status_code == 200
    body = response.json()
    assert body["general"]["siteName"] == "Refactorium"
    assert body["email"]["smtpPassword"] == ""
    assert body["appearance"]["theme"] == "auto"


def test_save_masks_and_encrypts_password(client, sync_engine, admin):
    response = client.put("/admin/settings", json=settings_document(), headers=auth_headers(admin))

    assert response.status_code == 200
    body = response.json()
    assert body["email"]["smtpPassword"] == "********"
    assert body["appearance"]["primaryColor"] == "green"
    assert stored_password(sync_engine) != "s3cret"
    assert decrypt_secret(stored_password(sync_engine)) == "s3cret"


def test_resubmitting_mask_keeps_password(client, sync_engine, admin):
    client.put("/admin/settings", json=settings_document(), headers=auth_headers(admin))

    response = client.put(
        "/admin/settings",
        json=settings_document(smtpPassword="********", smtpHost="mail.example.com"),
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    assert response.json()["email"]["smtpHost"] == "mail.example.com"
    assert decrypt_secret(stored_password(sync_engine)) == "s3cret"


def test_save_validates_sections(client, admin):
    bad_url = settings_document()
    bad_url["general"]["siteUrl"] = "nope"
    missing_section = settings_document()
    del missing_section["features"]

    assert client.put("/admin/settings", json=bad_url, headers=auth_headers(admin)).status_code == 400
    assert client.put("/admin/settings", json=missing_section, headers=auth_headers(admin)).status_code == 400


def test_only_admins_save(client, moderator):
    response = client.put("/admin/settings", json=settings_document(), headers=auth_headers(moderator))
    assert response.status_code == 403


@pytest.fixture
def outbox(monkeypatch):
    sent = []

    class RecordingEmailService:
        def __init__(self, email_settings):
            self.email_settings = email_settings

        async def send_test_email(self, to_email, site_name):
            sent.append((to_email, site_name, self.email_settings.smtp_password))

    monkeypatch.setattr(settings_service, "EmailService", RecordingEmailService)
    return sent


def test_test_email_requires_enabled_smtp(client, admin, outbox):
    response = client.post("/admin/settings/test-email", json={"email": "ops@example.com"},
                           headers=auth_headers(admin))

    assert response.status_code == 400
    assert outbox == []


def test_test_email_uses_decrypted_password(client, admin, outbox):
    client.put("/admin/settings", json=settings_document(), headers=auth_headers(admin))

    response = client.post("/admin/settings/test-email", json={"email": "ops@example.com"},
                           headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert outbox == [("ops@example.com", "Refactorium", "s3cret")]


def test_email_service_renders_and_sends(monkeypatch):
    delivered = []

    class FakeSMTP:
        def __init__(self, hostname, port, use_tls):
            delivered.append(("connect", hostname, port, use_tls))

        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc_info):
            return False

        async def login(self, username, password):
            delivered.append(("login", username, password))

        async def sendmail(self, sender, recipients, message):
            delivered.append(("sendmail", sender, recipients, message))

    monkeypatch.setattr(email_service.aiosmtplib, "SMTP", FakeSMTP)
    service = email_service.EmailService(EmailSettings(
        smtp_host="smtp.example.com", smtp_user="mailer", smtp_password="s3cret",
        from_email="noreply@example.com", from_name="Refactorium", enabled=True,
    ))

    asyncio.run(service.send_test_email("ops@example.com", "Refactorium"))

    assert delivered[0] == ("connect", "smtp.example.com", 587, False)
    assert delivered[1] == ("login", "mailer", "s3cret")
    _, sender, recipients, message = delivered[2]
    assert sender == "noreply@example.com"
    assert recipients == ["ops@example.com"]
    assert "Subject: Refactorium test email" in message
    assert "smtp.example.com" in message
