"""
Menu API Endpoints
Public menu for the customer ordering page.
"""
from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.exceptions import ComandaError
from app.services.menu_service import MenuService

router = APIRouter()


def get_menu_service() -> MenuService:
    return MenuService()


@router.get("/")
async def get_menu(
    catalog: str = Query('menu', description="'menu' or 'ready' (ready products)"),
    service: MenuService = Depends(get_menu_service)
):
    """Active categories with their available products"""
    try:
        menu = service.get_menu(catalog)
        return {
            "status": "success",
            "count": len(menu),
            "data": [category.to_dict() for category in menu]
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching menu: {str(e)}")


@router.get("/categories")
async def get_categories(
    catalog: str = Query('menu', description="'menu' or 'ready' (ready products)"),
    service: MenuService = Depends(get_menu_service)
):
    try:
        categories = service.get_categories(catalog)
        return {
            "status": "success",
            "data": [category.model_dump() for category in categories]
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching categories: {str(e)}")
