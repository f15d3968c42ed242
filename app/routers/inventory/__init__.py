from fastapi import APIRouter

from .products import router as products_router

router = APIRouter(prefix="/inventory")

router.include_router(products_router)
