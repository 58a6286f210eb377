"""
Resource Strategies — Everything that varies by resource kind, in one table.

Each ResourceKind maps to a ResourceStrategy that bundles:

  bulk_query / page_query   The GraphQL text for the export job and the
                            paginated alternate path.
  root_field                Top-level connection name in paginated responses.
  parent_typename           The __typename that marks a top-level record.
  child_connection          Nested connection whose nodes become child records
                            (None for kinds that are flat).
  title_keys                Fields joined with a space to form the entity title.
  template / child_template Embedding-text templates. {title} and {createdAt}
                            come from the reconciled entity; every other
                            placeholder is a field path resolved by the
                            RecordFormatter, with "N/A" for missing values.

Pipeline stages look their behaviour up here instead of branching on the kind,
so supporting a new resource is a matter of adding one table entry.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .errors import UnsupportedResourceKind
from .graphql_queries import (
    PRODUCTS_BULK_QUERY,
    ORDERS_BULK_QUERY,
    CUSTOMERS_BULK_QUERY,
    PRODUCTS_PAGE_QUERY,
    ORDERS_PAGE_QUERY,
    CUSTOMERS_PAGE_QUERY,
)
from .models import ResourceKind


@dataclass(frozen=True)
class ResourceStrategy:
    kind: ResourceKind
    bulk_query: str
    page_query: str
    root_field: str
    parent_typename: str
    title_keys: Tuple[str, ...]
    template: str
    paths: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    child_connection: Optional[str] = None
    child_template: Optional[str] = None
    child_paths: Dict[str, Tuple[str, ...]] = field(default_factory=dict)

    @property
    def groups_children(self) -> bool:
        return self.child_connection is not None


RESOURCE_STRATEGIES = {
    ResourceKind.PRODUCT: ResourceStrategy(
        kind=ResourceKind.PRODUCT,
        bulk_query=PRODUCTS_BULK_QUERY,
        page_query=PRODUCTS_PAGE_QUERY,
        root_field="products",
        parent_typename="Product",
        title_keys=("title",),
        template="Product: {title}. Created at: {createdAt}. Variants: {children}.",
        child_connection="variants",
        child_template="id: {id}, title: {title}, price: {price}",
        child_paths={
            "id": ("id",),
            "title": ("title",),
            "price": ("price",),
        },
    ),
    ResourceKind.ORDER: ResourceStrategy(
        kind=ResourceKind.ORDER,
        bulk_query=ORDERS_BULK_QUERY,
        page_query=ORDERS_PAGE_QUERY,
        root_field="orders",
        parent_typename="Order",
        title_keys=("name",),
        template="Order: {title}. Created at: {createdAt}. Total Price: {amount}.",
        paths={"amount": ("totalPriceSet", "shopMoney", "amount")},
    ),
    ResourceKind.CUSTOMER: ResourceStrategy(
        kind=ResourceKind.CUSTOMER,
        bulk_query=CUSTOMERS_BULK_QUERY,
        page_query=CUSTOMERS_PAGE_QUERY,
        root_field="customers",
        parent_typename="Customer",
        title_keys=("firstName", "lastName"),
        template="Customer: {firstName} {lastName}. Email: {email}. Created at: {createdAt}.",
        paths={
            "firstName": ("firstName",),
            "lastName": ("lastName",),
            "email": ("email",),
        },
    ),
}


def strategy_for(kind) -> ResourceStrategy:
    """Return the strategy for a ResourceKind.

    Raises:
        UnsupportedResourceKind: If kind is not a ResourceKind member.
    """
    if not isinstance(kind, ResourceKind) or kind not in RESOURCE_STRATEGIES:
        raise UnsupportedResourceKind(kind)
    return RESOURCE_STRATEGIES[kind]


def query_for(kind) -> str:
    """Return the bulk export query text for a resource kind."""
    return strategy_for(kind).bulk_query
