import logging
from fastapi import APIRouter, HTTPException, Depends, Body
from typing import Any, Callable, Dict
from mentara.core.db import KeyValueStore, get_store
from mentara.api.crud.catalog_crud import (
    CatalogRepository,
    counselor_catalog,
    section_catalog,
    product_catalog,
    DEFAULT_COUNSELORS,
    DEFAULT_RESOURCES,
    DEFAULT_PRODUCTS,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# Public reads

@router.get("/counselors")
async def public_counselors(store: KeyValueStore = Depends(get_store)):
    try:
        return await counselor_catalog(store).list_public()
    except Exception as e:
        logger.exception(f"Error fetching public counselors: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch counselors")


@router.get("/resources")
async def public_resources(store: KeyValueStore = Depends(get_store)):
    try:
        return await section_catalog(store).list_public()
    except Exception as e:
        logger.exception(f"Error fetching public resources: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch resources")


@router.get("/products")
async def public_products(store: KeyValueStore = Depends(get_store)):
    try:
        return await product_catalog(store).list_public()
    except Exception as e:
        logger.exception(f"Error fetching public products: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch products")


# Admin CRUD, one set of routes per catalog

def _register_admin_routes(kind: str, factory: Callable[[KeyValueStore], CatalogRepository], label: str):
    noun = label.lower()

    async def list_items(store: KeyValueStore = Depends(get_store)):
        try:
            return await factory(store).list()
        except Exception as e:
            logger.exception(f"Error fetching {kind}: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to fetch {kind}")

    async def add_item(body: Dict[str, Any] = Body(...), store: KeyValueStore = Depends(get_store)):
        try:
            item = await factory(store).add(body)
            return {"message": f"{label} added successfully", noun: item}
        except Exception as e:
            logger.exception(f"Error adding {noun}: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to add {noun}")

    async def update_item(item_id: str, body: Dict[str, Any] = Body(...), store: KeyValueStore = Depends(get_store)):
        try:
            if not await factory(store).update(item_id, body):
                raise HTTPException(status_code=404, detail=f"{label} not found")
            return {"message": f"{label} updated successfully"}
        except HTTPException:
            raise
        except Exception as e:
            logger.exception(f"Error updating {noun}: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to update {noun}")

    async def delete_item(item_id: str, store: KeyValueStore = Depends(get_store)):
        try:
            if not await factory(store).delete(item_id):
                raise HTTPException(status_code=404, detail=f"{label} not found")
            return {"message": f"{label} deleted successfully"}
        except HTTPException:
            raise
        except Exception as e:
            logger.exception(f"Error deleting {noun}: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to delete {noun}")

    router.add_api_route(f"/admin/{kind}", list_items, methods=["GET"], name=f"list_{kind}")
    router.add_api_route(f"/admin/{kind}", add_item, methods=["POST"], name=f"add_{noun}")
    router.add_api_route(f"/admin/{kind}/{{item_id}}", update_item, methods=["PUT"], name=f"update_{noun}")
    router.add_api_route(f"/admin/{kind}/{{item_id}}", delete_item, methods=["DELETE"], name=f"delete_{noun}")


_register_admin_routes("counselors", counselor_catalog, "Counselor")
_register_admin_routes("sections", section_catalog, "Section")
_register_admin_routes("products", product_catalog, "Product")


@router.post("/admin/init-data")
async def init_data(store: KeyValueStore = Depends(get_store)):
    """Seed each catalog with its defaults when it is empty or its size differs from the defaults."""
    try:
        updated = {}
        counts = {}
        for name, catalog, defaults in (
            ("products", product_catalog(store), DEFAULT_PRODUCTS),
            ("counselors", counselor_catalog(store), DEFAULT_COUNSELORS),
            ("resources", section_catalog(store), DEFAULT_RESOURCES),
        ):
            existing = await catalog.list()
            updated[name] = len(existing) != len(defaults)
            if updated[name]:
                await catalog.seed(defaults)
                logger.info(f"Seeded {len(defaults)} default {name}")
            counts[name] = len(defaults)

        return {
            "success": True,
            "message": "Data initialized successfully",
            "updated": updated,
            "counts": counts,
        }
    except Exception as e:
        logger.exception(f"Error initializing data: {e}")
        raise HTTPException(status_code=500, detail="Failed to initialize data")
