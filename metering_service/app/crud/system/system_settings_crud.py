import logging

from sqlalchemy.orm import Session

from shared.core.config import settings

from ...models.system.system_settings import SystemSetting
from ...schemas.system.system_settings_schema import SystemSettingsUpdate

logger = logging.getLogger(__name__)


def get_or_create_settings(db: Session) -> SystemSetting:
    setting = db.query(SystemSetting).first()
    if setting:
        return setting

    setting = SystemSetting(
        rate_per_unit=settings.DEFAULT_RATE_PER_UNIT,
        currency=settings.DEFAULT_CURRENCY,
        business_name=settings.BUSINESS_NAME,
    )
    db.add(setting)
    db.flush()
    logger.info("Seeded system settings with rate %s", setting.rate_per_unit)
    return setting


def get_rate_per_unit(db: Session) -> float:
    return float(get_or_create_settings(db).rate_per_unit)


def get_system_settings(db: Session) -> SystemSetting:
    setting = get_or_create_settings(db)
    db.commit()
    db.refresh(setting)
    return setting


def update_system_settings(db: Session, update_data: SystemSettingsUpdate) -> SystemSetting:
    setting = get_or_create_settings(db)

    for field, value in update_data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(setting, field, value)

    db.commit()
    db.refresh(setting)
    # existing invoices keep the rate they were issued with
    logger.info("System settings updated, rate per unit now %s", setting.rate_per_unit)
    return setting
