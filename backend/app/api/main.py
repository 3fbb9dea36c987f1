from fastapi import APIRouter

from app.api.routes import documents, gallery, reflections, trees, users, utils

api_router = APIRouter()
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(utils.router, tags=["utils"])
api_router.include_router(documents.router, prefix="/documents", tags=["documents"])
api_router.include_router(trees.router, prefix="/trees", tags=["trees"])
api_router.include_router(gallery.router, prefix="/gallery", tags=["gallery"])
api_router.include_router(reflections.router, prefix="/reflections", tags=["reflections"])
