"""
==============================================================================
Category Endpoints
==============================================================================

Endpoints for managing categories.

Deleting a category moves the products it leaves empty to the fallback
category. Every change is published to /topic/category and
/topic/category/{id}.

==============================================================================
"""

from typing import List, Tuple

from fastapi import APIRouter, Body, Depends, Response, status

from productmanager.core import exceptions
from productmanager.core.dependencies import (
    get_category_service,
    get_category_sort,
    get_topic_broker,
)
from productmanager.db.models import Category
from productmanager.schemas.category import (
    CategoryCreate,
    CategoryDetail,
    CategoryListResponse,
    CategoryResponse,
    CategoryUpdate,
)
from productmanager.schemas.common import DeletedResponse, MessageResponse
from productmanager.search.filters import SortSpec
from productmanager.services.category_service import CategoryService
from productmanager.websockets.broker import CATEGORY_TOPIC, TopicBroker, category_topic


router = APIRouter(prefix="/categories", tags=["Categories"])


class CategoryController:
    """Controller for category operations."""

    def __init__(self, service: CategoryService, broker: TopicBroker):
        self._service = service
        self._broker = broker

    async def _notify(self, event: str, category_id: int, payload: dict) -> None:
        """Publish a category event to its own topic and the collection topic."""
        await self._broker.publish_all(
            [category_topic(category_id), CATEGORY_TOPIC],
            {"event": event, "category_id": category_id, **payload}
        )

    async def _notify_saved(self, event: str, category: Category) -> CategoryDetail:
        detail = CategoryDetail.from_model(category)
        await self._notify(event, category.id, {"category": detail.model_dump(mode="json")})
        return detail

    def list_all(self, sort: SortSpec) -> CategoryListResponse:
        """List categories."""
        categories = self._service.list_categories(sort)
        return CategoryListResponse(
            categories=[CategoryDetail.from_model(c) for c in categories],
            total=len(categories)
        )

    def get(self, category_id: int) -> CategoryResponse:
        """Get category by ID."""
        category = self._service.get_category(category_id)
        return CategoryResponse(category=CategoryDetail.from_model(category))

    async def create(self, data: CategoryCreate) -> Tuple[CategoryResponse, bool]:
        """
        Create category, or return the existing one with that name.

        Only a newly created category is published.

        Returns:
            Response and whether a new row was created
        """
        existing = self._service.get_by_name(data.name)
        category = self._service.add_category(data.name)
        if existing is not None and existing.id == category.id:
            return CategoryResponse(category=CategoryDetail.from_model(category)), False
        return CategoryResponse(category=await self._notify_saved("created", category)), True

    async def create_many(self, items: List[CategoryCreate]) -> CategoryListResponse:
        """Create several categories; only new ones are published."""
        names = [item.name for item in items]
        existing = {name for name in names if self._service.get_by_name(name) is not None}
        categories = self._service.add_categories(names)

        details = []
        published = set()
        for category in categories:
            if category.name in existing or category.id in published:
                details.append(CategoryDetail.from_model(category))
                continue
            published.add(category.id)
            details.append(await self._notify_saved("created", category))
        return CategoryListResponse(categories=details, total=len(details))

    async def rename(self, category_id: int, data: CategoryUpdate) -> CategoryResponse:
        """Rename category; the new name must not belong to another category."""
        category = self._service.get_category(category_id)
        holder = self._service.get_by_name(data.name)
        if holder is not None and holder.id != category.id:
            raise exceptions.category_name_exists(data.name)

        category = self._service.update_category(category_id, data.name)
        return CategoryResponse(category=await self._notify_saved("updated", category))

    async def delete(self, category_id: int) -> MessageResponse:
        """Delete category."""
        self._service.delete_category(category_id)
        await self._notify("deleted", category_id, {})
        return MessageResponse(message=f"Category {category_id} deleted")

    async def delete_many(self, category_ids: List[int]) -> DeletedResponse:
        """Delete several categories, skipping unknown ids."""
        deleted = self._service.delete_categories(category_ids)
        for category_id in deleted:
            await self._notify("deleted", category_id, {})
        return DeletedResponse(
            message=f"{len(deleted)} categories deleted",
            deleted_ids=deleted
        )


@router.get("", response_model=CategoryListResponse)
async def list_categories(
    sort: SortSpec = Depends(get_category_sort),
    service: CategoryService = Depends(get_category_service),
    broker: TopicBroker = Depends(get_topic_broker)
):
    """List all categories with their products."""
    controller = CategoryController(service, broker)
    return controller.list_all(sort)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    request: CategoryCreate,
    response: Response,
    service: CategoryService = Depends(get_category_service),
    broker: TopicBroker = Depends(get_topic_broker)
):
    """
    Create a category.

    A taken name returns the existing category with 200 instead of 201.
    """
    controller = CategoryController(service, broker)
    body, created = await controller.create(request)
    if not created:
        response.status_code = status.HTTP_200_OK
    return body


@router.post("/bulk", response_model=CategoryListResponse, status_code=status.HTTP_201_CREATED)
async def create_categories(
    request: List[CategoryCreate],
    service: CategoryService = Depends(get_category_service),
    broker: TopicBroker = Depends(get_topic_broker)
):
    """Create several categories."""
    controller = CategoryController(service, broker)
    return await controller.create_many(request)


@router.delete("/bulk", response_model=DeletedResponse)
async def delete_categories(
    category_ids: List[int] = Body(..., min_length=1),
    service: CategoryService = Depends(get_category_service),
    broker: TopicBroker = Depends(get_topic_broker)
):
    """Delete several categories. Fails only if none of the ids exist."""
    controller = CategoryController(service, broker)
    return await controller.delete_many(category_ids)


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: int,
    service: CategoryService = Depends(get_category_service),
    broker: TopicBroker = Depends(get_topic_broker)
):
    """Get category by ID."""
    controller = CategoryController(service, broker)
    return controller.get(category_id)


@router.put("/{category_id}", response_model=CategoryResponse)
async def rename_category(
    category_id: int,
    request: CategoryUpdate,
    service: CategoryService = Depends(get_category_service),
    broker: TopicBroker = Depends(get_topic_broker)
):
    """Rename category."""
    controller = CategoryController(service, broker)
    return await controller.rename(category_id, request)


@router.delete("/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: int,
    service: CategoryService = Depends(get_category_service),
    broker: TopicBroker = Depends(get_topic_broker)
):
    """Delete category; products left without a category move to the fallback."""
    controller = CategoryController(service, broker)
    return await controller.delete(category_id)
