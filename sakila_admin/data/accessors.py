"""
Table-specific typed accessors built on `DataGateway.fetch_page`.

Each accessor fixes the table and its default ordering and validates rows
into the matching entity model, so callers get `TypedPage[Film]` instead of
raw dictionaries.
"""

from __future__ import annotations

from typing import Optional, Type, TypeVar

from sakila_admin.data.gateway import DataGateway
from sakila_admin.data.query import Filters
from sakila_admin.domain.entities import (
    Actor,
    Category,
    Comment,
    Customer,
    Entity,
    Film,
    Payment,
    Rental,
    Subscription,
    User,
    Video,
    VideoCategory,
)
from sakila_admin.domain.models import TypedPage

E = TypeVar("E", bound=Entity)


async def fetch_typed(
    gateway: DataGateway,
    model: Type[E],
    table: str,
    page: int = 1,
    page_size: int = 25,
    order_column: Optional[str] = None,
    ascending: bool = True,
    filters: Optional[Filters] = None,
) -> TypedPage[E]:
    result = await gateway.fetch_page(
        table, page, page_size, order_column, ascending, filters
    )
    return TypedPage[model](  # type: ignore[valid-type]
        rows=[model.model_validate(row) for row in result.rows],
        total_count=result.total_count,
        page=result.page,
        page_size=result.page_size,
        has_more=result.has_more,
        error=result.error,
        table_exists=result.table_exists,
    )


async def fetch_films(gateway: DataGateway, page: int = 1, page_size: int = 25, filters: Optional[Filters] = None) -> TypedPage[Film]:
    return await fetch_typed(gateway, Film, "film", page, page_size, "title", True, filters)


async def fetch_actors(gateway: DataGateway, page: int = 1, page_size: int = 25, filters: Optional[Filters] = None) -> TypedPage[Actor]:
    return await fetch_typed(gateway, Actor, "actor", page, page_size, "last_name", True, filters)


async def fetch_customers(gateway: DataGateway, page: int = 1, page_size: int = 25, filters: Optional[Filters] = None) -> TypedPage[Customer]:
    return await fetch_typed(gateway, Customer, "customer", page, page_size, "last_name", True, filters)


async def fetch_categories(gateway: DataGateway, page: int = 1, page_size: int = 25, filters: Optional[Filters] = None) -> TypedPage[Category]:
    return await fetch_typed(gateway, Category, "category", page, page_size, "name", True, filters)


async def fetch_rentals(gateway: DataGateway, page: int = 1, page_size: int = 25, filters: Optional[Filters] = None) -> TypedPage[Rental]:
    return await fetch_typed(gateway, Rental, "rental", page, page_size, "rental_date", False, filters)


async def fetch_payments(gateway: DataGateway, page: int = 1, page_size: int = 25, filters: Optional[Filters] = None) -> TypedPage[Payment]:
    return await fetch_typed(gateway, Payment, "payment", page, page_size, "payment_date", False, filters)


async def fetch_videos(gateway: DataGateway, page: int = 1, page_size: int = 25, filters: Optional[Filters] = None) -> TypedPage[Video]:
    return await fetch_typed(gateway, Video, "videos", page, page_size, "created_at", False, filters)


async def fetch_users(gateway: DataGateway, page: int = 1, page_size: int = 25, filters: Optional[Filters] = None) -> TypedPage[User]:
    return await fetch_typed(gateway, User, "users", page, page_size, "created_at", False, filters)


async def fetch_video_categories(gateway: DataGateway, page: int = 1, page_size: int = 25, filters: Optional[Filters] = None) -> TypedPage[VideoCategory]:
    return await fetch_typed(gateway, VideoCategory, "categories", page, page_size, "name", True, filters)


async def fetch_subscriptions(gateway: DataGateway, page: int = 1, page_size: int = 25, filters: Optional[Filters] = None) -> TypedPage[Subscription]:
    return await fetch_typed(gateway, Subscription, "subscriptions", page, page_size, "start_date", False, filters)


async def fetch_comments(gateway: DataGateway, page: int = 1, page_size: int = 25, filters: Optional[Filters] = None) -> TypedPage[Comment]:
    return await fetch_typed(gateway, Comment, "comments", page, page_size, "created_at", False, filters)


__all__ = [
    "fetch_actors",
    "fetch_categories",
    "fetch_comments",
    "fetch_customers",
    "fetch_films",
    "fetch_payments",
    "fetch_rentals",
    "fetch_subscriptions",
    "fetch_typed",
    "fetch_users",
    "fetch_video_categories",
    "fetch_videos",
]
