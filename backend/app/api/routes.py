from fastapi import APIRouter

from app.api.catalog import router as catalog_router
from app.api.contacts import router as contacts_router
from app.api.rooms import router as rooms_router
from app.api.schedule import router as schedule_router
from app.api.users import router as users_router

router = APIRouter()

router.include_router(rooms_router)
router.include_router(contacts_router)
router.include_router(users_router)
router.include_router(catalog_router)
router.include_router(schedule_router)


@router.get("/", tags=["root"])
def read_root() -> dict[str, str]:
    return {"message": "Welcome to the ClassMate API"}
