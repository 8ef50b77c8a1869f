import os
import logging

from ..infra.jsonstore import JsonTable
from .albums import AlbumStore
from .catalog import CategoryStore, ProductStore
from .orders import OrderStore
from .participants import ParticipantStore
from .rides import RideStore
from .siteconfig import SiteConfigStore, DEFAULT_CONFIG
from .users import UserStore

logger = logging.getLogger(__name__)

# one JSON document per resource under the data directory
TABLE_FILES = {
    "orders": "orders.json",
    "products": "products.json",
    "categories": "categories.json",
    "rides": "rides.json",
    "users": "users.json",
    "albums": "albums.json",
    "participants": "participants.json",
    "site_config": "site-config.json",
}


class Database:
    def __init__(self, data_dir: str) -> None:
        self.data_dir = data_dir
        self.tables = {
            name: JsonTable(
                os.path.join(data_dir, filename),
                default=dict(DEFAULT_CONFIG) if name == "site_config" else [],
            )
            for name, filename in TABLE_FILES.items()
        }
        t = self.tables
        self.participants = ParticipantStore(t["participants"])
        self.rides = RideStore(t["rides"], self.participants)
        self.albums = AlbumStore(t["albums"])
        self.orders = OrderStore(t["orders"])
        self.products = ProductStore(t["products"])
        self.categories = CategoryStore(t["categories"], t["products"])
        self.users = UserStore(t["users"])
        self.site_config = SiteConfigStore(t["site_config"])

    def ensure(self) -> None:
        for table in self.tables.values():
            table.ensure()
        logger.debug("data files ready in %s", self.data_dir)
