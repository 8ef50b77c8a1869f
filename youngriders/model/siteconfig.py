from __future__ import annotations
import logging
from typing import Any, Dict, TypedDict

from ..infra.jsonstore import JsonTable
from .errors import ValidationError

logger = logging.getLogger(__name__)


class SiteConfig(TypedDict):
    maintenanceMode: bool
    shopClosed: bool
    maintenancePassword: str
    homeHeroImage: str
    contactHeroImage: str
    logoPath: str


DEFAULT_CONFIG: SiteConfig = {
    "maintenanceMode": False,
    "shopClosed": False,
    "maintenancePassword": "admin123",
    "homeHeroImage": "/static/hero.svg",
    "contactHeroImage": "/static/hero.svg",
    "logoPath": "/static/logo.svg",
}

IMAGE_KEYS = ("homeHeroImage", "contactHeroImage", "logoPath")
# upload `type` form field -> config key
IMAGE_TYPES = {
    "home": "homeHeroImage",
    "contact": "contactHeroImage",
    "logo": "logoPath",
}


def public_config(config: SiteConfig) -> Dict[str, Any]:
    return {k: v for k, v in config.items() if k != "maintenancePassword"}


def status_only(config: SiteConfig) -> Dict[str, bool]:
    return {
        "maintenanceMode": config["maintenanceMode"],
        "shopClosed": config["shopClosed"],
    }


class SiteConfigStore:
    def __init__(self, table: JsonTable) -> None:
        self.table = table

    async def get(self) -> SiteConfig:
        # read fresh on every call; fill keys older files lack
        return {**DEFAULT_CONFIG, **self.table.read()}

    async def _set(self, **changes: Any) -> SiteConfig:
        async with self.table.gated():
            config = {**DEFAULT_CONFIG, **self.table.read(), **changes}
            self.table.write(config)
        logger.info("site config updated: %s", ", ".join(sorted(changes)))
        return config

    async def set_maintenance_mode(self, enabled: bool) -> SiteConfig:
        if not isinstance(enabled, bool):
            raise ValidationError(
                "Value must be a boolean for setMaintenanceMode"
            )
        return await self._set(maintenanceMode=enabled)

    async def set_shop_closed(self, closed: bool) -> SiteConfig:
        if not isinstance(closed, bool):
            raise ValidationError("Value must be a boolean for setShopClosed")
        return await self._set(shopClosed=closed)

    async def update_maintenance_password(self, password: str) -> SiteConfig:
        if not isinstance(password, str) or not password:
            raise ValidationError(
                "Value must be a non-empty string for "
                "updateMaintenancePassword"
            )
        return await self._set(maintenancePassword=password)

    async def update_images(self, **paths: str) -> SiteConfig:
        changes = {k: v for k, v in paths.items() if k in IMAGE_KEYS and v}
        if not changes:
            return await self.get()
        return await self._set(**changes)
