from fastapi import APIRouter

from evdock.api.v1.endpoints import (
    deposits,
    preorder_tasks,
    installments,
)

# Create main API router
api_router = APIRouter(prefix="/api/v1")

# ==================== Deposits ====================
api_router.include_router(
    deposits.router,
    prefix="/deposits",
    tags=["Deposits"]
)

# ==================== EVM Pre-order Tasks ====================
api_router.include_router(
    preorder_tasks.router,
    prefix="/preorder-tasks",
    tags=["Pre-order Tasks"]
)

# ==================== Installments ====================
api_router.include_router(
    installments.router,
    prefix="/installments",
    tags=["Installments"]
)
