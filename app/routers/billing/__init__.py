from fastapi import APIRouter
from .clients_router import router as clients_router
from .orders_router import router as orders_router

router = APIRouter(prefix="/billing")

router.include_router(clients_router)
router.include_router(orders_router)
