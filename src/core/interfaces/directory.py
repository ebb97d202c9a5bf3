"""Read-only port onto the organisation directory (users, units, items)."""

from abc import ABC, abstractmethod

from src.core.entities.directory import Item, Unit, User


class IDirectory(ABC):
    """Lookups the fulfillment core needs from the org-structure records."""

    @abstractmethod
    async def get_user_by_id(self, user_id: str) -> User | None:
        pass

    @abstractmethod
    async def get_unit_by_id(self, unit_id: str) -> Unit | None:
        pass

    @abstractmethod
    async def get_item_by_id(self, item_id: str) -> Item | None:
        pass
