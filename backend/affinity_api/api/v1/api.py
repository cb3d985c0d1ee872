from fastapi import APIRouter

from affinity_api.api.v1.endpoints import auth, admin, database, predict

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(admin.router, prefix="/auth/admin", tags=["admin"])
api_router.include_router(database.router, prefix="/database", tags=["database"])
api_router.include_router(predict.router, tags=["predict"])
