"""
Reconciler — Groups flat raw records into parent entities with children.

A bulk export flattens nested connections: a product's variants arrive as
separate records pointing back at the product through parent_id, and nothing
guarantees the product line comes first. The Reconciler rebuilds the tree in
one pass with an insertion-ordered map keyed by entity id:

  Parent record   (no parent_id, __typename absent or equal to the kind's
                   parent typename)
      -> new entity, or fill in the placeholder a child already created
  Child record    (parent_id present)
      -> create a placeholder {title "Unknown", createdAt ""} for the parent
         if it has not been seen yet, then append the child in arrival order

Kinds without a child connection (orders, customers) skip grouping: every
record is its own entity, and a repeated id merges into the first one.

Invariants:
  - exactly one entity per distinct id seen as a parent record or a parent_id
  - every child is attached to exactly one entity
  - the result does not depend on whether parents precede children

Pipeline context:
    Fourth step of both pipelines. Output goes to the RecordFormatter.
"""

from collections import OrderedDict
from typing import Dict, Iterable

from .models import RawRecord, ReconciledEntity, ResourceKind
from .resources import ResourceStrategy, strategy_for

MISSING = "N/A"


def title_for(strategy: ResourceStrategy, fields: Dict) -> str:
    """Join the strategy's title fields, rendering absent ones as N/A."""
    parts = []
    for key in strategy.title_keys:
        value = fields.get(key)
        parts.append(MISSING if value is None else str(value))
    return " ".join(parts)


class Reconciler:
    """Rebuilds parent/child structure from an arbitrarily ordered record stream.

    Attributes:
        debug: If True, prints entity and placeholder counts.
    """

    def __init__(self, debug: bool = False):
        self.debug = debug

    def reconcile(self, records: Iterable[RawRecord], kind: ResourceKind) -> "OrderedDict[str, ReconciledEntity]":
        """Group records into entities for the given resource kind.

        Args:
            records: RawRecords in stream order.
            kind: The resource kind, which selects the grouping rule.

        Returns:
            An OrderedDict of id -> ReconciledEntity, in first-seen order.
        """
        strategy = strategy_for(kind)
        entities: "OrderedDict[str, ReconciledEntity]" = OrderedDict()

        for record in records:
            if not strategy.groups_children:
                self._merge_parent(entities, record, strategy)
            elif record.parent_id:
                self._attach_child(entities, record)
            elif self._is_parent(record, strategy):
                self._merge_parent(entities, record, strategy)
            elif self.debug:
                print(f"  Ignoring unattached {record.typename} record {record.id}")

        if self.debug:
            placeholders = sum(1 for e in entities.values() if e.is_placeholder)
            children = sum(len(e.children) for e in entities.values())
            print(f"  Reconciled {len(entities)} {kind.value} "
                  f"({children} children, {placeholders} without a parent record)")

        return entities

    def _is_parent(self, record: RawRecord, strategy: ResourceStrategy) -> bool:
        return record.typename is None or record.typename == strategy.parent_typename

    def _merge_parent(self, entities, record: RawRecord, strategy: ResourceStrategy):
        entity = entities.get(record.id)
        if entity is None:
            entity = ReconciledEntity(id=record.id)
            entities[record.id] = entity

        entity.is_placeholder = False
        entity.fields.update(record.fields)
        entity.title = title_for(strategy, entity.fields)
        created_at = entity.fields.get("createdAt")
        entity.created_at = MISSING if created_at is None else str(created_at)

    def _attach_child(self, entities, record: RawRecord):
        entity = entities.get(record.parent_id)
        if entity is None:
            entity = ReconciledEntity.placeholder(record.parent_id)
            entities[record.parent_id] = entity
        entity.children.append(record)
