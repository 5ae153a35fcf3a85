from fastapi import APIRouter, Depends

from notekeeper.api.deps import get_current_user, get_stores
from notekeeper.models.notes import CategoryCreate
from notekeeper.services import categories as category_service
from notekeeper.services.serializers import category_out
from notekeeper.storage import Stores

router = APIRouter(prefix="/categories", tags=["categories"])


@router.post("", status_code=201)
def create_category(
    payload: CategoryCreate,
    user_id: str = Depends(get_current_user),
    stores: Stores = Depends(get_stores),
) -> dict:
    cat = category_service.create_category(stores, user_id, payload.name, payload.color)
    return {"success": True, "message": "Category created successfully", "category": category_out(cat)}


@router.get("")
def list_categories(user_id: str = Depends(get_current_user), stores: Stores = Depends(get_stores)) -> dict:
    return {
        "success": True,
        "message": "Categories retrieved successfully",
        "categories": [category_out(c) for c in stores.categories.list_for_user(user_id)],
    }
