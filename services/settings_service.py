"""
System settings persisted as flat ``section.field`` rows with JSON values.
"""
import json
from typing import Dict
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ValidationException
from core.logging import get_logger
from core.security import Principal, encrypt_secret, decrypt_secret
from models.models import Setting
from schemas.system_settings import SystemSettings, SystemSettingsUpdate, EmailSettings, SECRET_MASK
from services.email_service import EmailService

logger = get_logger("settings_service")

SECRET_FIELDS = {("email", "smtpPassword")}


class SettingsService:
    """Typed view over the key/value settings table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _stored_rows(self) -> Dict[str, Setting]:
        rows = (await self.db.execute(select(Setting))).scalars().all()
        return {row.key: row for row in rows}

    async def load(self, mask_secrets: bool = True) -> SystemSettings:
        """Stored values overlaid on defaults; secrets are decrypted, then masked unless asked not to."""
        document = SystemSettings().model_dump(by_alias=True)
        for key, row in (await self._stored_rows()).items():
            section, _, field = key.partition(".")
            if section not in document or field not in document[section]:
                logger.debug("Ignoring unknown setting", key=key)
                continue
            value = json.loads(row.value)
            if (section, field) in SECRET_FIELDS:
                value = decrypt_secret(value)
                if mask_secrets and value:
                    value = SECRET_MASK
            document[section][field] = value
        return SystemSettings.model_validate(document)

    async def save(self, update: SystemSettingsUpdate, principal: Principal) -> SystemSettings:
        """Write the full document. A masked secret leaves the stored secret untouched."""
        rows = await self._stored_rows()
        document = update.model_dump(by_alias=True)
        written = 0

        for section, values in document.items():
            for field, value in values.items():
                key = f"{section}.{field}"
                if (section, field) in SECRET_FIELDS:
                    if value == SECRET_MASK:
                        continue
                    value = encrypt_secret(value)
                encoded = json.dumps(value)
                if key in rows:
                    rows[key].value = encoded
                else:
                    self.db.add(Setting(key=key, value=encoded))
                written += 1

        await self.db.commit()
        logger.info("System settings saved", keys_written=written, user_id=principal.user_id)
        return await self.load()

    async def send_test_email(self, to_email: str, principal: Principal) -> None:
        current = await self.load(mask_secrets=False)
        email_settings: EmailSettings = current.email
        if not email_settings.enabled:
            raise ValidationException("Email sending is disabled", field="email.enabled")
        if not email_settings.smtp_host:
            raise ValidationException("SMTP host is not configured", field="email.smtpHost")

        await EmailService(email_settings).send_test_email(to_email, current.general.site_name)
        logger.info("Test email sent", to_email=to_email, user_id=principal.user_id)
