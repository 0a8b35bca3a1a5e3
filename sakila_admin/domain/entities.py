"""
Entity shape hints for the Sakila schema and the video-streaming overlay.

These models mirror remote table rows; they add no constraints of their own
(uniqueness, foreign keys and nullability live in the database). Extra
columns, embedded relations and per-render computed fields such as
`film_count` or `is_rented` pass through untouched.
"""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from pydantic import BaseModel

Identifier = Union[UUID, str]


class Entity(BaseModel):
    """Base for passthrough row models."""

    model_config = {
        "extra": "allow",
        "populate_by_name": True,
    }


# ---- Sakila DVD store ------------------------------------------------------


class Language(Entity):
    language_id: int
    name: str
    last_update: Optional[datetime] = None


class Film(Entity):
    film_id: int
    title: str
    description: Optional[str] = None
    release_year: Optional[int] = None
    language_id: Optional[int] = None
    original_language_id: Optional[int] = None
    rental_duration: Optional[int] = None
    rental_rate: Optional[Decimal] = None
    length: Optional[int] = None
    replacement_cost: Optional[Decimal] = None
    rating: Optional[str] = None
    last_update: Optional[datetime] = None
    special_features: Optional[List[str]] = None


class Actor(Entity):
    actor_id: int
    first_name: str
    last_name: str
    last_update: Optional[datetime] = None


class Category(Entity):
    category_id: int
    name: str
    last_update: Optional[datetime] = None


class Country(Entity):
    country_id: int
    country: str
    last_update: Optional[datetime] = None


class City(Entity):
    city_id: int
    city: str
    country_id: Optional[int] = None
    last_update: Optional[datetime] = None


class Address(Entity):
    address_id: int
    address: str
    address2: Optional[str] = None
    district: Optional[str] = None
    city_id: Optional[int] = None
    postal_code: Optional[str] = None
    phone: Optional[str] = None
    last_update: Optional[datetime] = None


class Customer(Entity):
    customer_id: int
    store_id: Optional[int] = None
    first_name: str
    last_name: str
    email: Optional[str] = None
    address_id: Optional[int] = None
    activebool: Optional[bool] = None
    create_date: Optional[date] = None
    last_update: Optional[datetime] = None
    active: Optional[int] = None


class Store(Entity):
    store_id: int
    manager_staff_id: Optional[int] = None
    address_id: Optional[int] = None
    last_update: Optional[datetime] = None


class Staff(Entity):
    staff_id: int
    first_name: str
    last_name: str
    address_id: Optional[int] = None
    email: Optional[str] = None
    store_id: Optional[int] = None
    active: Optional[bool] = None
    username: Optional[str] = None
    last_update: Optional[datetime] = None


class Inventory(Entity):
    inventory_id: int
    film_id: int
    store_id: int
    last_update: Optional[datetime] = None


class Rental(Entity):
    rental_id: int
    rental_date: datetime
    inventory_id: int
    customer_id: int
    return_date: Optional[datetime] = None
    staff_id: int
    last_update: Optional[datetime] = None


class Payment(Entity):
    payment_id: int
    customer_id: int
    staff_id: int
    rental_id: Optional[int] = None
    amount: Decimal
    payment_date: datetime


# ---- Video streaming overlay ----------------------------------------------


class Video(Entity):
    id: Identifier
    title: str
    description: Optional[str] = None
    url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration: Optional[int] = None
    views: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    category_id: Optional[Identifier] = None
    status: Optional[str] = None
    user_id: Optional[Identifier] = None


class User(Entity):
    id: Identifier
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Optional[str] = None
    created_at: Optional[datetime] = None
    last_sign_in: Optional[datetime] = None
    subscription_tier: Optional[str] = None


class VideoCategory(Entity):
    id: Identifier
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Subscription(Entity):
    id: Identifier
    user_id: Identifier
    plan_id: Optional[str] = None
    status: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    payment_method: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None


class Comment(Entity):
    id: Identifier
    video_id: Identifier
    user_id: Identifier
    content: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    parent_id: Optional[Identifier] = None


class ViewEvent(Entity):
    id: Identifier
    video_id: Identifier
    user_id: Optional[Identifier] = None
    watched_at: Optional[datetime] = None
    watch_duration: Optional[int] = None
    completed: Optional[bool] = None
    device_type: Optional[str] = None


ENTITY_MODELS: Dict[str, Any] = {
    "language": Language,
    "film": Film,
    "actor": Actor,
    "category": Category,
    "country": Country,
    "city": City,
    "address": Address,
    "customer": Customer,
    "store": Store,
    "staff": Staff,
    "inventory": Inventory,
    "rental": Rental,
    "payment": Payment,
    "videos": Video,
    "users": User,
    "categories": VideoCategory,
    "subscriptions": Subscription,
    "comments": Comment,
    "view_events": ViewEvent,
}


__all__ = [
    "ENTITY_MODELS",
    "Actor",
    "Address",
    "Category",
    "City",
    "Comment",
    "Country",
    "Customer",
    "Entity",
    "Film",
    "Inventory",
    "Language",
    "Payment",
    "Rental",
    "Staff",
    "Store",
    "Subscription",
    "User",
    "Video",
    "VideoCategory",
    "ViewEvent",
]
