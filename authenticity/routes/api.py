from fastapi import APIRouter
from authenticity.routes import check

router = APIRouter()

router.include_router(check.router, prefix="/api", tags=["Authenticity Check"])
