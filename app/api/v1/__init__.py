from fastapi import APIRouter
from app.api.v1 import auth, inventory, purchase_orders, suppliers, sales, ai

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(inventory.router, prefix="/inventory", tags=["Inventory"])
api_router.include_router(purchase_orders.router, prefix="/purchase-orders", tags=["Purchase Orders"])
api_router.include_router(suppliers.router, prefix="/suppliers", tags=["Suppliers"])
api_router.include_router(sales.router, prefix="/sales", tags=["Sales"])
api_router.include_router(ai.router, prefix="/ai", tags=["AI Assistant"])
