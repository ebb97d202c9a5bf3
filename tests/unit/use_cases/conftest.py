"""Fixtures for use case tests with mocked stores."""

from unittest.mock import AsyncMock

import pytest

from src.application.services import WarehouseContext
from src.core.entities import (
    FurnitureRequest,
    FurnitureRequestStatus,
    Request,
    RequestStatus,
    User,
    UserRole,
    WarehouseType,
)


@pytest.fixture(autouse=True)
def _isolated_settings(settings):
    """Retry and scan code settings come from the throwaway environment."""
    return settings


@pytest.fixture
def warehouse() -> WarehouseContext:
    return WarehouseContext(unit_id="warehouse-central", known_to_directory=True)


@pytest.fixture
def directory_users() -> dict[str, User]:
    return {
        "u-storage": User(
            id="u-storage", name="Storage", role=UserRole.WAREHOUSE,
            primary_unit_id="warehouse-central", warehouse_type=WarehouseType.STORAGE,
        ),
        "u-driver": User(
            id="u-driver", name="Driver", role=UserRole.WAREHOUSE,
            primary_unit_id="warehouse-central", warehouse_type=WarehouseType.DELIVERY,
        ),
        "u-controller": User(
            id="u-controller", name="Controller", role=UserRole.CONTROLLER, primary_unit_id="unit-1"
        ),
        "u-requester": User(
            id="u-requester", name="Requester", role=UserRole.REQUESTER, primary_unit_id="unit-1"
        ),
        "u-designer": User(id="u-designer", name="Designer", role=UserRole.DESIGNER),
    }


@pytest.fixture
def mock_directory(directory_users):
    directory = AsyncMock()
    directory.get_user_by_id.side_effect = lambda user_id: directory_users.get(user_id)
    return directory


def _make_request(
    request_id: str,
    unit_id: str = "unit-1",
    status: RequestStatus = RequestStatus.APPROVED,
    quantity: float = 5,
    version: int = 1,
) -> Request:
    return Request(
        id=request_id,
        item_id="item-paper",
        requesting_unit_id=unit_id,
        requested_by_user_id="u-requester",
        quantity=quantity,
        status=status,
        version=version,
    )


def _make_furniture(
    request_id: str,
    unit_id: str = "unit-1",
    status: FurnitureRequestStatus = FurnitureRequestStatus.APPROVED_STORAGE,
    version: int = 2,
) -> FurnitureRequest:
    return FurnitureRequest(
        id=request_id,
        item_id="item-desk",
        requesting_unit_id=unit_id,
        requested_by_user_id="u-requester",
        quantity=1,
        status=status,
        version=version,
    )


@pytest.fixture
def make_request():
    return _make_request


@pytest.fixture
def make_furniture():
    return _make_furniture
