"""
==============================================================================
Product Endpoints
==============================================================================

Endpoints for creating, searching, updating and deleting products.

Every change is published to /topic/product and /topic/product/{id}.

==============================================================================
"""

from typing import List

from fastapi import APIRouter, Body, Depends, status

from productmanager.core.dependencies import (
    get_product_service,
    get_product_sort,
    get_search_criteria,
    get_topic_broker,
)
from productmanager.db.models import Product
from productmanager.schemas.common import DeletedResponse, MessageResponse
from productmanager.schemas.product import (
    ProductCreate,
    ProductDetail,
    ProductListResponse,
    ProductResponse,
    ProductSearchCriteria,
    ProductUpdate,
)
from productmanager.search.filters import SortSpec
from productmanager.services.product_service import ProductService
from productmanager.websockets.broker import PRODUCT_TOPIC, TopicBroker, product_topic


router = APIRouter(prefix="/products", tags=["Products"])


class ProductController:
    """Controller for product operations."""

    def __init__(self, service: ProductService, broker: TopicBroker):
        self._service = service
        self._broker = broker

    async def _notify(self, event: str, product_id: int, payload: dict) -> None:
        """Publish a product event to its own topic and the collection topic."""
        await self._broker.publish_all(
            [product_topic(product_id), PRODUCT_TOPIC],
            {"event": event, "product_id": product_id, **payload}
        )

    async def _notify_saved(self, event: str, product: Product) -> ProductDetail:
        detail = ProductDetail.from_model(product)
        await self._notify(event, product.id, {"product": detail.model_dump(mode="json")})
        return detail

    def search(self, criteria: ProductSearchCriteria, sort: SortSpec) -> ProductListResponse:
        """Search products; no criteria lists every product."""
        products = self._service.search(criteria, sort)
        return ProductListResponse(
            products=[ProductDetail.from_model(p) for p in products],
            total=len(products)
        )

    def get(self, product_id: int) -> ProductResponse:
        """Get product by ID."""
        product = self._service.get_product(product_id)
        return ProductResponse(product=ProductDetail.from_model(product))

    async def create(self, data: ProductCreate) -> ProductResponse:
        """Create product."""
        product = self._service.add_product(data)
        return ProductResponse(product=await self._notify_saved("created", product))

    async def create_many(self, items: List[ProductCreate]) -> ProductListResponse:
        """Create several products in one transaction."""
        products = self._service.add_products(items)
        details = [await self._notify_saved("created", p) for p in products]
        return ProductListResponse(products=details, total=len(details))

    async def update(self, product_id: int, data: ProductUpdate) -> ProductResponse:
        """Update product."""
        product = self._service.update_product(product_id, data)
        return ProductResponse(product=await self._notify_saved("updated", product))

    async def clear_categories(self, product_id: int) -> ProductResponse:
        """Move product to the fallback category only."""
        product = self._service.clear_categories(product_id)
        return ProductResponse(product=await self._notify_saved("updated", product))

    async def delete(self, product_id: int) -> MessageResponse:
        """Delete product."""
        self._service.delete_product(product_id)
        await self._notify("deleted", product_id, {})
        return MessageResponse(message=f"Product {product_id} deleted")

    async def delete_many(self, product_ids: List[int]) -> DeletedResponse:
        """Delete several products, skipping unknown ids."""
        deleted = self._service.delete_products(product_ids)
        for product_id in deleted:
            await self._notify("deleted", product_id, {})
        return DeletedResponse(
            message=f"{len(deleted)} products deleted",
            deleted_ids=deleted
        )


@router.get("", response_model=ProductListResponse)
async def search_products(
    criteria: ProductSearchCriteria = Depends(get_search_criteria),
    sort: SortSpec = Depends(get_product_sort),
    service: ProductService = Depends(get_product_service),
    broker: TopicBroker = Depends(get_topic_broker)
):
    """
    List or search products.

    All filters are optional and combined with AND; repeated ``categories``
    match products in any of the listed categories.
    """
    controller = ProductController(service, broker)
    return controller.search(criteria, sort)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    request: ProductCreate,
    service: ProductService = Depends(get_product_service),
    broker: TopicBroker = Depends(get_topic_broker)
):
    """Create a product. Unknown category names are created."""
    controller = ProductController(service, broker)
    return await controller.create(request)


@router.post("/bulk", response_model=ProductListResponse, status_code=status.HTTP_201_CREATED)
async def create_products(
    request: List[ProductCreate],
    service: ProductService = Depends(get_product_service),
    broker: TopicBroker = Depends(get_topic_broker)
):
    """Create several products (all or nothing)."""
    controller = ProductController(service, broker)
    return await controller.create_many(request)


@router.delete("/bulk", response_model=DeletedResponse)
async def delete_products(
    product_ids: List[int] = Body(..., min_length=1),
    service: ProductService = Depends(get_product_service),
    broker: TopicBroker = Depends(get_topic_broker)
):
    """Delete several products. Fails only if none of the ids exist."""
    controller = ProductController(service, broker)
    return await controller.delete_many(product_ids)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    service: ProductService = Depends(get_product_service),
    broker: TopicBroker = Depends(get_topic_broker)
):
    """Get product by ID."""
    controller = ProductController(service, broker)
    return controller.get(product_id)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    request: ProductUpdate,
    service: ProductService = Depends(get_product_service),
    broker: TopicBroker = Depends(get_topic_broker)
):
    """Update product fields; listed categories are added."""
    controller = ProductController(service, broker)
    return await controller.update(product_id, request)


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(
    product_id: int,
    service: ProductService = Depends(get_product_service),
    broker: TopicBroker = Depends(get_topic_broker)
):
    """Delete product."""
    controller = ProductController(service, broker)
    return await controller.delete(product_id)


@router.delete("/{product_id}/categories", response_model=ProductResponse)
async def clear_product_categories(
    product_id: int,
    service: ProductService = Depends(get_product_service),
    broker: TopicBroker = Depends(get_topic_broker)
):
    """Remove product from all categories; it is moved to the fallback category."""
    controller = ProductController(service, broker)
    return await controller.clear_categories(product_id)
