"""
Record Formatter — Turns reconciled entities into canonical records.

The embedding text is rendered from the kind's templates in core.resources:

  products   Product: {title}. Created at: {createdAt}. Variants: id: .., title: .., price: .., id: ...
  orders     Order: {title}. Created at: {createdAt}. Total Price: {amount}.
  customers  Customer: {firstName} {lastName}. Email: {email}. Created at: {createdAt}.

{title} and {createdAt} come from the entity itself (so a placeholder product
renders as "Unknown" with an empty date); every other placeholder is a field
path into the record, and anything missing along the path renders as "N/A".
Rendering is a pure function of its input, so the same entity always yields
byte-identical text.

Pipeline context:
    Last step of both pipelines. The CanonicalRecord list is what the
    orchestrator saves and what a downstream indexer consumes.
"""

from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union

from .models import CanonicalRecord, RawRecord, ReconciledEntity, ResourceKind
from .reconciler import MISSING, title_for
from .resources import strategy_for


def resolve_path(fields: Mapping[str, Any], path: Tuple[str, ...]) -> str:
    """Walk a nested field path, returning "N/A" if any step is missing."""
    value: Any = fields
    for key in path:
        if not isinstance(value, Mapping):
            return MISSING
        value = value.get(key)
        if value is None:
            return MISSING
    return str(value)


class RecordFormatter:
    """Renders CanonicalRecords from entities or flat records."""

    def format(self, item: Union[ReconciledEntity, RawRecord], kind: ResourceKind) -> CanonicalRecord:
        """Render one entity (or a flat record) as a CanonicalRecord.

        Args:
            item: A ReconciledEntity, or a RawRecord for flat kinds.
            kind: The resource kind, which selects the template.

        Returns:
            The CanonicalRecord with its embedding text.
        """
        strategy = strategy_for(kind)
        entity = item if isinstance(item, ReconciledEntity) else self._entity_from_record(item, kind)

        values: Dict[str, str] = {
            name: resolve_path(entity.fields, path)
            for name, path in strategy.paths.items()
        }
        values["title"] = entity.title
        values["createdAt"] = entity.created_at
        if strategy.groups_children:
            values["children"] = ", ".join(
                strategy.child_template.format(**{
                    name: resolve_path(dict(child.fields, id=child.id), path)
                    for name, path in strategy.child_paths.items()
                })
                for child in entity.children
            )

        return CanonicalRecord(
            id=entity.id,
            title=entity.title,
            created_at=entity.created_at,
            embedding_text=strategy.template.format(**values),
        )

    def format_all(self, items: Union[Mapping[str, ReconciledEntity], Iterable], kind: ResourceKind) -> List[CanonicalRecord]:
        """Format a reconciled mapping (or any iterable of entities) in order."""
        if isinstance(items, Mapping):
            items = items.values()
        return [self.format(item, kind) for item in items]

    def _entity_from_record(self, record: RawRecord, kind: ResourceKind) -> ReconciledEntity:
        strategy = strategy_for(kind)
        created_at = record.fields.get("createdAt")
        return ReconciledEntity(
            id=record.id,
            title=title_for(strategy, record.fields),
            created_at=MISSING if created_at is None else str(created_at),
            fields=dict(record.fields),
        )
