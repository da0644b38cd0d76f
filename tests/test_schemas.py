import pytest

from app.core.config import Settings
from app.schemas.auth import UserResponse
from app.schemas.inventory import (
    CategoryResponse, InventoryLogResponse, InventorySnapshotResponse, ProductResponse, SupplierResponse,
)
from app.schemas.purchasing import (
    PurchaseOrderDetail, PurchaseOrderItemResponse, PurchaseOrderResponse, ReceiptResponse, StatusHistoryResponse,
)
from app.schemas.sales import OrderItemResponse, OrderResponse

ORM_MODELS = [
    UserResponse, CategoryResponse, SupplierResponse, ProductResponse, InventoryLogResponse,
    InventorySnapshotResponse, PurchaseOrderItemResponse, ReceiptResponse, StatusHistoryResponse,
    PurchaseOrderResponse, PurchaseOrderDetail, OrderItemResponse, OrderResponse,
]


@pytest.mark.parametrize("model", ORM_MODELS, ids=lambda model: model.__name__)
def test_response_models_read_orm_attributes(model):
    assert model.model_config.get("from_attributes") is True
    assert "Config" not in vars(model)


def test_settings_read_env_file_case_sensitively():
    assert Settings.model_config["env_file"] == ".env"
    assert Settings.model_config["case_sensitive"] is True
    assert "Config" not in vars(Settings)
