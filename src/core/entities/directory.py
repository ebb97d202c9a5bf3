"""Read-only organisation records consumed from the directory."""

from enum import Enum

from pydantic import BaseModel, Field


class UserRole(str, Enum):
    CONTROLLER = "controller"
    ADMIN = "admin"
    WAREHOUSE = "warehouse"
    DESIGNER = "designer"
    DEVELOPER = "developer"
    REQUESTER = "requester"


class WarehouseType(str, Enum):
    STORAGE = "storage"
    DELIVERY = "delivery"


class User(BaseModel):
    id: str
    name: str
    role: UserRole
    primary_unit_id: str | None = None
    additional_unit_ids: list[str] = Field(default_factory=list)
    warehouse_type: WarehouseType | None = None

    @property
    def unit_ids(self) -> set[str]:
        units = set(self.additional_unit_ids)
        if self.primary_unit_id:
            units.add(self.primary_unit_id)
        return units

    def belongs_to(self, unit_id: str) -> bool:
        return unit_id in self.unit_ids

    @property
    def is_driver(self) -> bool:
        return self.role == UserRole.WAREHOUSE and self.warehouse_type == WarehouseType.DELIVERY

    @property
    def can_approve(self) -> bool:
        return self.role in (UserRole.WAREHOUSE, UserRole.CONTROLLER)


class Unit(BaseModel):
    id: str
    name: str
    status: str = "active"


class Item(BaseModel):
    id: str
    name: str
    is_furniture: bool = False
    default_minimum_quantity: float = 0.0
