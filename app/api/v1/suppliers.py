from fastapi import APIRouter, Depends
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.inventory import Supplier
from app.models.user import User
from app.repositories.store_scope import StoreRepository
from app.schemas.common import envelope, reject_nulls
from app.schemas.inventory import SupplierCreate, SupplierResponse, SupplierUpdate
from app.services.suppliers import supplier_analytics
from app.api.v1.dependencies import get_store_repository, require_permission_dependency

router = APIRouter()

def _get_supplier(repo: StoreRepository, supplier_id: int) -> Supplier:
    supplier = repo.get_supplier(supplier_id)
    if not supplier:
        raise NotFoundError("Supplier not found")
    return supplier

@router.get("")
def get_suppliers(
    active_only: bool = False,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("suppliers", "view"))
):
    return envelope([SupplierResponse.model_validate(s) for s in repo.suppliers(active_only=active_only)])

@router.post("", status_code=201)
def create_supplier(
    supplier: SupplierCreate,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("suppliers", "create"))
):
    if repo.supplier_by_name(supplier.name):
        raise ConflictError("A supplier with this name already exists")
    with repo.transaction():
        db_supplier = repo.add(Supplier(**supplier.model_dump()))
    return envelope(SupplierResponse.model_validate(db_supplier), "Supplier created")

@router.get("/{supplier_id}")
def get_supplier(
    supplier_id: int,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("suppliers", "view"))
):
    supplier = _get_supplier(repo, supplier_id)
    data = SupplierResponse.model_validate(supplier).model_dump()
    data["analytics"] = supplier_analytics(repo.supplier_purchase_orders(supplier.id))
    return envelope(data)

@router.put("/{supplier_id}")
def update_supplier(
    supplier_id: int,
    supplier: SupplierUpdate,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("suppliers", "edit"))
):
    db_supplier = _get_supplier(repo, supplier_id)
    update_data = supplier.model_dump(exclude_unset=True)
    if not update_data:
        raise ValidationError("No fields to update")
    reject_nulls(update_data, ("name", "is_active"))
    if "name" in update_data and repo.supplier_by_name(update_data["name"], exclude_id=supplier_id):
        raise ConflictError("A supplier with this name already exists")

    with repo.transaction():
        for field, value in update_data.items():
            setattr(db_supplier, field, value)
    return envelope(SupplierResponse.model_validate(db_supplier), "Supplier updated")

@router.delete("/{supplier_id}")
def delete_supplier(
    supplier_id: int,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("suppliers", "delete"))
):
    """Soft delete - set is_active to False"""
    db_supplier = _get_supplier(repo, supplier_id)
    with repo.transaction():
        db_supplier.is_active = False
    return envelope({"supplier_id": supplier_id}, "Supplier deactivated successfully")

@router.get("/{supplier_id}/analytics")
def get_supplier_analytics(
    supplier_id: int,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("reports", "view"))
):
    supplier = _get_supplier(repo, supplier_id)
    stats = supplier_analytics(repo.supplier_purchase_orders(supplier.id))
    return envelope({"supplier_id": supplier.id, "supplier_name": supplier.name, **stats})
