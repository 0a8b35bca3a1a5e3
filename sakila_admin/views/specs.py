"""
Declarative list-view definitions.

A `ListViewSpec` names everything a table listing needs: the table, its
ordering, the displayed columns (dotted paths into embedded objects with a
placeholder for missing relations), the search mode, the foreign keys to
embed and the per-page related counts. `VIEWS` holds one spec per entity.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple
from uuid import UUID

from sakila_admin.data.query import Embed, Filters, ILike, InSubquery, IsNull, OrderBy

UNKNOWN = "Unknown"
NOT_AVAILABLE = "N/A"

Formatter = Callable[[Any], str]


# ---- Formatters -------------------------------------------------------------


def currency(value: Any) -> str:
    return f"${Decimal(str(value)):,.2f}"


def short_date(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.strftime("%Y-%m-%d")
    return str(value)


def timestamp(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    return short_date(value)


def yes_no(value: Any) -> str:
    return "Yes" if value else "No"


def minutes(value: Any) -> str:
    return f"{value} min"


def full_name(value: Any) -> str:
    if isinstance(value, Mapping):
        parts = [value.get("first_name"), value.get("last_name")]
        name = " ".join(str(part) for part in parts if part)
        return name or UNKNOWN
    return str(value)


def joined(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value) or NOT_AVAILABLE
    return str(value)


def rental_status(value: Any) -> str:
    return "Rented" if value else "Available"


def resolve_path(row: Mapping[str, Any], path: str) -> Any:
    """Follow a dotted path through nested dicts; None when any hop is missing."""
    current: Any = row
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current


# ---- Declarations -----------------------------------------------------------


@dataclass(frozen=True)
class ColumnSpec:
    label: str
    path: str
    placeholder: str = NOT_AVAILABLE
    formatter: Optional[Formatter] = None

    def render(self, row: Mapping[str, Any]) -> str:
        value = resolve_path(row, self.path)
        if value is None or value == "":
            return self.placeholder
        if self.formatter is not None:
            return self.formatter(value)
        return str(value)


@dataclass(frozen=True)
class RelatedCount:
    """Rows of `table` whose `key_column` references the row (one grouped query per page)."""

    name: str
    table: str
    key_column: str
    local_key: str
    filters: Optional[Filters] = None


@dataclass(frozen=True)
class RelatedFlag:
    """True when at least one matching row of `table` references the row."""

    name: str
    table: str
    key_column: str
    local_key: str
    filters: Optional[Filters] = None


@dataclass(frozen=True)
class RelatedValues:
    """Values reached through a link table, e.g. a film's category names."""

    name: str
    link_table: str
    link_key: str
    target_table: str
    target_key: str
    target_column: str
    local_key: str


@dataclass(frozen=True)
class ActionSpec:
    """A row or view action. Unimplemented actions render disabled."""

    key: str
    label: str
    implemented: bool = False

    @property
    def message(self) -> str:
        if self.implemented:
            return ""
        return f"{self.label} is not implemented"


ROW_ACTIONS = (
    ActionSpec("edit", "Edit"),
    ActionSpec("delete", "Delete"),
)
VIEW_ACTIONS = (ActionSpec("add", "Add"),)

SearchFilterBuilder = Callable[[str], Optional[Filters]]


@dataclass(frozen=True)
class ListViewSpec:
    view_id: str
    title: str
    table: str
    order: Optional[OrderBy]
    columns: Tuple[ColumnSpec, ...]
    entity_label: str
    search_columns: Tuple[str, ...] = ()
    search_filters: Optional[SearchFilterBuilder] = None
    search_placeholder: Optional[str] = None
    embeds: Tuple[Embed, ...] = ()
    related: Tuple[Any, ...] = ()
    row_actions: Tuple[ActionSpec, ...] = ROW_ACTIONS
    view_actions: Tuple[ActionSpec, ...] = VIEW_ACTIONS
    filters: Optional[Filters] = None
    section: str = "sakila"

    @property
    def searchable(self) -> bool:
        return bool(self.search_columns) or self.search_filters is not None

    def empty_message(self, term: Optional[str] = None) -> str:
        if term:
            return f'No {self.entity_label} match "{term}"'
        return f"No {self.entity_label} found"


# ---- Search modes -----------------------------------------------------------


def _numeric(term: str) -> Optional[Decimal]:
    try:
        amount = Decimal(term.strip().lstrip("$"))
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def payment_amount_search(term: str) -> Optional[Filters]:
    """Exact amount match; non-numeric terms can't match any payment."""
    amount = _numeric(term)
    if amount is None:
        return None
    return {"amount": amount}


def rental_id_search(term: str) -> Optional[Filters]:
    # str.isdigit() also accepts superscripts and non-ASCII digits int() rejects.
    term = term.strip()
    if not (term.isascii() and term.isdigit()):
        return None
    return {"rental_id": int(term)}


def inventory_title_search(term: str) -> Filters:
    return {"film_id": InSubquery("film", "film_id", "title", ILike(term))}


def subscription_user_search(term: str) -> Optional[Filters]:
    try:
        return {"user_id": UUID(term.strip())}
    except ValueError:
        return None


# ---- Shared embeds ----------------------------------------------------------

_CITY_WITH_COUNTRY = Embed(
    "city",
    "city",
    "city_id",
    columns=("city_id", "city", "country_id"),
    embeds=(Embed("country", "country", "country_id", columns=("country_id", "country")),),
)
_ADDRESS = Embed(
    "address",
    "address",
    "address_id",
    columns=("address_id", "address", "district", "postal_code", "phone", "city_id"),
    embeds=(_CITY_WITH_COUNTRY,),
)
_PERSON_COLUMNS = ("first_name", "last_name")
_FILM = Embed("film", "film", "film_id", columns=("film_id", "title", "rental_rate", "replacement_cost"))


def _by_id(column: str, ascending: bool, tiebreaker: str) -> OrderBy:
    return OrderBy(column, ascending, tiebreaker)


# ---- Sakila views -----------------------------------------------------------

FILMS = ListViewSpec(
    view_id="films",
    title="Films",
    table="film",
    order=_by_id("title", True, "film_id"),
    entity_label="films",
    columns=(
        ColumnSpec("Title", "title"),
        ColumnSpec("Release Year", "release_year"),
        ColumnSpec("Language", "language.name", placeholder=UNKNOWN),
        ColumnSpec("Length", "length", formatter=minutes),
        ColumnSpec("Rating", "rating"),
        ColumnSpec("Rental Rate", "rental_rate", formatter=currency),
        ColumnSpec("Categories", "categories", formatter=joined),
    ),
    search_columns=("title",),
    search_placeholder="Search films by title",
    embeds=(Embed("language", "language", "language_id", columns=("language_id", "name")),),
    related=(
        RelatedValues("categories", "film_category", "film_id", "category", "category_id", "name", "film_id"),
    ),
)

ACTORS = ListViewSpec(
    view_id="actors",
    title="Actors",
    table="actor",
    order=_by_id("last_name", True, "actor_id"),
    entity_label="actors",
    columns=(
        ColumnSpec("First Name", "first_name"),
        ColumnSpec("Last Name", "last_name"),
        ColumnSpec("Films", "film_count"),
        ColumnSpec("Last Updated", "last_update", formatter=short_date),
    ),
    search_columns=("first_name", "last_name"),
    search_placeholder="Search actors by name",
    related=(RelatedCount("film_count", "film_actor", "actor_id", "actor_id"),),
)

CUSTOMERS = ListViewSpec(
    view_id="customers",
    title="Customers",
    table="customer",
    order=_by_id("last_name", True, "customer_id"),
    entity_label="customers",
    columns=(
        ColumnSpec("First Name", "first_name"),
        ColumnSpec("Last Name", "last_name"),
        ColumnSpec("Email", "email"),
        ColumnSpec("Address", "address.address", placeholder=UNKNOWN),
        ColumnSpec("City", "address.city.city", placeholder=UNKNOWN),
        ColumnSpec("Country", "address.city.country.country", placeholder=UNKNOWN),
        ColumnSpec("Active", "activebool", formatter=yes_no),
        ColumnSpec("Rentals", "rental_count"),
    ),
    search_columns=("first_name", "last_name", "email"),
    search_placeholder="Search customers by name or email",
    embeds=(_ADDRESS,),
    related=(RelatedCount("rental_count", "rental", "customer_id", "customer_id"),),
)

RENTALS = ListViewSpec(
    view_id="rentals",
    title="Rentals",
    table="rental",
    order=_by_id("rental_date", False, "rental_id"),
    entity_label="rentals",
    columns=(
        ColumnSpec("Rental ID", "rental_id"),
        ColumnSpec("Rental Date", "rental_date", formatter=timestamp),
        ColumnSpec("Customer", "customer", placeholder=UNKNOWN, formatter=full_name),
        ColumnSpec("Film", "inventory.film.title", placeholder=UNKNOWN),
        ColumnSpec("Staff", "staff", placeholder=UNKNOWN, formatter=full_name),
        ColumnSpec("Return Date", "return_date", placeholder="Not returned", formatter=timestamp),
    ),
    search_filters=rental_id_search,
    search_placeholder="Search by rental ID",
    embeds=(
        Embed("customer", "customer", "customer_id", columns=_PERSON_COLUMNS),
        Embed("staff", "staff", "staff_id", columns=_PERSON_COLUMNS),
        Embed("inventory", "inventory", "inventory_id", columns=("inventory_id", "film_id"), embeds=(_FILM,)),
    ),
)

PAYMENTS = ListViewSpec(
    view_id="payments",
    title="Payments",
    table="payment",
    order=_by_id("payment_date", False, "payment_id"),
    entity_label="payments",
    columns=(
        ColumnSpec("Payment ID", "payment_id"),
        ColumnSpec("Date", "payment_date", formatter=timestamp),
        ColumnSpec("Customer", "customer", placeholder=UNKNOWN, formatter=full_name),
        ColumnSpec("Staff", "staff", placeholder=UNKNOWN, formatter=full_name),
        ColumnSpec("Film", "rental.inventory.film.title", placeholder=UNKNOWN),
        ColumnSpec("Amount", "amount", formatter=currency),
    ),
    search_filters=payment_amount_search,
    search_placeholder="Search by amount",
    embeds=(
        Embed("customer", "customer", "customer_id", columns=_PERSON_COLUMNS),
        Embed("staff", "staff", "staff_id", columns=_PERSON_COLUMNS),
        Embed(
            "rental",
            "rental",
            "rental_id",
            columns=("rental_id", "inventory_id"),
            embeds=(
                Embed("inventory", "inventory", "inventory_id", columns=("inventory_id", "film_id"), embeds=(_FILM,)),
            ),
        ),
    ),
)

INVENTORY = ListViewSpec(
    view_id="inventory",
    title="Inventory",
    table="inventory",
    order=_by_id("inventory_id", True, "inventory_id"),
    entity_label="inventory items",
    columns=(
        ColumnSpec("Inventory ID", "inventory_id"),
        ColumnSpec("Film", "film.title", placeholder=UNKNOWN),
        ColumnSpec("Store", "store_id"),
        ColumnSpec("Store Address", "store.address.address", placeholder=UNKNOWN),
        ColumnSpec("City", "store.address.city.city", placeholder=UNKNOWN),
        ColumnSpec("Rental Rate", "film.rental_rate", formatter=currency),
        ColumnSpec("Replacement Cost", "film.replacement_cost", formatter=currency),
        ColumnSpec("Status", "is_rented", formatter=rental_status),
    ),
    search_filters=inventory_title_search,
    search_placeholder="Search by film title",
    embeds=(
        _FILM,
        Embed(
            "store",
            "store",
            "store_id",
            columns=("store_id", "address_id"),
            embeds=(
                Embed(
                    "address",
                    "address",
                    "address_id",
                    columns=("address_id", "address", "city_id"),
                    embeds=(Embed("city", "city", "city_id", columns=("city_id", "city")),),
                ),
            ),
        ),
    ),
    related=(RelatedFlag("is_rented", "rental", "inventory_id", "inventory_id", {"return_date": IsNull()}),),
)

STORES = ListViewSpec(
    view_id="stores",
    title="Stores",
    table="store",
    order=_by_id("store_id", True, "store_id"),
    entity_label="stores",
    columns=(
        ColumnSpec("Store ID", "store_id"),
        ColumnSpec("Manager", "manager", placeholder=UNKNOWN, formatter=full_name),
        ColumnSpec("Address", "address.address", placeholder=UNKNOWN),
        ColumnSpec("City", "address.city.city", placeholder=UNKNOWN),
        ColumnSpec("Country", "address.city.country.country", placeholder=UNKNOWN),
        ColumnSpec("Inventory", "inventory_count"),
        ColumnSpec("Customers", "customer_count"),
    ),
    embeds=(
        _ADDRESS,
        Embed("manager", "staff", "manager_staff_id", "staff_id", columns=_PERSON_COLUMNS),
    ),
    related=(
        RelatedCount("inventory_count", "inventory", "store_id", "store_id"),
        RelatedCount("customer_count", "customer", "store_id", "store_id"),
    ),
)

CATEGORIES = ListViewSpec(
    view_id="categories",
    title="Categories",
    table="category",
    order=_by_id("name", True, "category_id"),
    entity_label="categories",
    columns=(
        ColumnSpec("Name", "name"),
        ColumnSpec("Films", "film_count"),
        ColumnSpec("Last Updated", "last_update", formatter=short_date),
    ),
    search_columns=("name",),
    search_placeholder="Search categories",
    related=(RelatedCount("film_count", "film_category", "category_id", "category_id"),),
)

STAFF = ListViewSpec(
    view_id="staff",
    title="Staff",
    table="staff",
    order=_by_id("last_name", True, "staff_id"),
    entity_label="staff members",
    columns=(
        ColumnSpec("First Name", "first_name"),
        ColumnSpec("Last Name", "last_name"),
        ColumnSpec("Email", "email"),
        ColumnSpec("Store", "store_id"),
        ColumnSpec("Address", "address.address", placeholder=UNKNOWN),
        ColumnSpec("City", "address.city.city", placeholder=UNKNOWN),
        ColumnSpec("Country", "address.city.country.country", placeholder=UNKNOWN),
        ColumnSpec("Active", "active", formatter=yes_no),
        ColumnSpec("Rentals", "rental_count"),
    ),
    search_columns=("first_name", "last_name", "email"),
    search_placeholder="Search staff by name or email",
    embeds=(_ADDRESS,),
    related=(RelatedCount("rental_count", "rental", "staff_id", "staff_id"),),
)

COUNTRIES = ListViewSpec(
    view_id="countries",
    title="Countries",
    table="country",
    order=_by_id("country", True, "country_id"),
    entity_label="countries",
    columns=(
        ColumnSpec("Country", "country"),
        ColumnSpec("Cities", "city_count"),
    ),
    search_columns=("country",),
    search_placeholder="Search countries",
    related=(RelatedCount("city_count", "city", "country_id", "country_id"),),
)

CITIES = ListViewSpec(
    view_id="cities",
    title="Cities",
    table="city",
    order=_by_id("city", True, "city_id"),
    entity_label="cities",
    columns=(
        ColumnSpec("City", "city"),
        ColumnSpec("Country", "country.country", placeholder=UNKNOWN),
        ColumnSpec("Addresses", "address_count"),
    ),
    search_columns=("city",),
    search_placeholder="Search cities",
    embeds=(Embed("country", "country", "country_id", columns=("country_id", "country")),),
    related=(RelatedCount("address_count", "address", "city_id", "city_id"),),
)

ADDRESSES = ListViewSpec(
    view_id="addresses",
    title="Addresses",
    table="address",
    order=_by_id("address", True, "address_id"),
    entity_label="addresses",
    columns=(
        ColumnSpec("Address", "address"),
        ColumnSpec("District", "district"),
        ColumnSpec("City", "city.city", placeholder=UNKNOWN),
        ColumnSpec("Country", "city.country.country", placeholder=UNKNOWN),
        ColumnSpec("Postal Code", "postal_code"),
        ColumnSpec("Phone", "phone"),
    ),
    search_columns=("address", "district"),
    search_placeholder="Search addresses",
    embeds=(_CITY_WITH_COUNTRY,),
)

# ---- Streaming views --------------------------------------------------------

VIDEOS = ListViewSpec(
    view_id="videos",
    title="Videos",
    table="videos",
    order=_by_id("created_at", False, "id"),
    entity_label="videos",
    section="streaming",
    columns=(
        ColumnSpec("Title", "title"),
        ColumnSpec("Status", "status"),
        ColumnSpec("Views", "views"),
        ColumnSpec("Duration", "duration"),
        ColumnSpec("Created", "created_at", formatter=short_date),
    ),
    search_columns=("title", "description"),
    search_placeholder="Search videos",
)

USERS = ListViewSpec(
    view_id="users",
    title="Users",
    table="users",
    order=_by_id("created_at", False, "id"),
    entity_label="users",
    section="streaming",
    columns=(
        ColumnSpec("Email", "email"),
        ColumnSpec("First Name", "first_name"),
        ColumnSpec("Last Name", "last_name"),
        ColumnSpec("Role", "role"),
        ColumnSpec("Tier", "subscription_tier"),
        ColumnSpec("Joined", "created_at", formatter=short_date),
        ColumnSpec("Last Sign In", "last_sign_in", placeholder="Never", formatter=timestamp),
    ),
    search_columns=("email", "first_name", "last_name"),
    search_placeholder="Search users by name or email",
)

VIDEO_CATEGORIES = ListViewSpec(
    view_id="video-categories",
    title="Video Categories",
    table="categories",
    order=_by_id("name", True, "id"),
    entity_label="categories",
    section="streaming",
    columns=(
        ColumnSpec("Name", "name"),
        ColumnSpec("Description", "description"),
        ColumnSpec("Created", "created_at", formatter=short_date),
    ),
    search_columns=("name",),
    search_placeholder="Search categories",
)

SUBSCRIPTIONS = ListViewSpec(
    view_id="subscriptions",
    title="Subscriptions",
    table="subscriptions",
    order=_by_id("start_date", False, "id"),
    entity_label="subscriptions",
    section="streaming",
    columns=(
        ColumnSpec("User", "user.email", placeholder=UNKNOWN),
        ColumnSpec("Plan", "plan_id"),
        ColumnSpec("Status", "status"),
        ColumnSpec("Amount", "amount", formatter=currency),
        ColumnSpec("Currency", "currency"),
        ColumnSpec("Start", "start_date", formatter=short_date),
        ColumnSpec("End", "end_date", formatter=short_date),
    ),
    search_filters=subscription_user_search,
    search_placeholder="Search by user ID",
    embeds=(Embed("user", "users", "user_id", "id", columns=("id", "email", "first_name", "last_name")),),
)

COMMENTS = ListViewSpec(
    view_id="comments",
    title="Comments",
    table="comments",
    order=_by_id("created_at", False, "id"),
    entity_label="comments",
    section="streaming",
    columns=(
        ColumnSpec("Comment", "content"),
        ColumnSpec("Video", "video.title", placeholder=UNKNOWN),
        ColumnSpec("User", "user.email", placeholder=UNKNOWN),
        ColumnSpec("Posted", "created_at", formatter=timestamp),
    ),
    search_columns=("content",),
    search_placeholder="Search comments",
    embeds=(
        Embed("video", "videos", "video_id", "id", columns=("id", "title")),
        Embed("user", "users", "user_id", "id", columns=("id", "email")),
    ),
)

VIEWS: Dict[str, ListViewSpec] = {
    spec.view_id: spec
    for spec in (
        FILMS,
        ACTORS,
        CUSTOMERS,
        RENTALS,
        PAYMENTS,
        INVENTORY,
        STORES,
        CATEGORIES,
        STAFF,
        COUNTRIES,
        CITIES,
        ADDRESSES,
        VIDEOS,
        USERS,
        VIDEO_CATEGORIES,
        SUBSCRIPTIONS,
        COMMENTS,
    )
}


def explorer_spec(table: str, column_names: Sequence[str]) -> ListViewSpec:
    """Generic listing of any table, ordered by its first column."""
    first = column_names[0] if column_names else None
    return ListViewSpec(
        view_id="explorer",
        title=table,
        table=table,
        order=OrderBy(first, True) if first else None,
        entity_label="rows",
        columns=tuple(ColumnSpec(name, name, placeholder="") for name in column_names),
        row_actions=(),
        view_actions=(),
        section="tools",
    )


__all__ = [
    "ActionSpec",
    "ColumnSpec",
    "ListViewSpec",
    "NOT_AVAILABLE",
    "RelatedCount",
    "RelatedFlag",
    "RelatedValues",
    "UNKNOWN",
    "VIEWS",
    "currency",
    "explorer_spec",
    "full_name",
    "payment_amount_search",
    "rental_id_search",
    "resolve_path",
]
