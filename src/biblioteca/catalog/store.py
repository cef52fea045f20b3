"""In-memory entity registries.

``EntityStore`` holds one ``Registry`` per entity kind. Mutating methods are
reserved for ``LendingManager``, which owns the store and keeps the
cross-registry invariants.
"""

from collections.abc import Iterable, Iterator
from typing import Callable, Generic, Optional, TypeVar

from ..errors import DuplicateIdError, NotFoundError, ReferentialIntegrityError
from .models import Document, Loan, User

T = TypeVar("T")


class Registry(Generic[T]):
    """A keyed collection of entities of one kind."""

    def __init__(self, kind: str, key: Callable[[T], str]):
        """Initialize registry.

        Args:
            kind: Human-readable entity name used in errors
            key: Function returning an entity's id
        """
        self.kind = kind
        self._key = key
        self._items: dict[str, T] = {}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._items

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items.values()))

    def values(self) -> list[T]:
        return list(self._items.values())

    def ids(self) -> list[str]:
        return list(self._items)

    def get(self, entity_id: str) -> Optional[T]:
        """Look up an entity, returning None when absent."""
        return self._items.get(entity_id)

    def require(self, entity_id: str) -> T:
        """Look up an entity that must exist."""
        item = self._items.get(entity_id)
        if item is None:
            raise NotFoundError(self.kind, entity_id)
        return item

    def insert(self, entity: T) -> T:
        """Add a new entity.

        Raises:
            DuplicateIdError: If the id is already present
        """
        entity_id = self._key(entity)
        if entity_id in self._items:
            raise DuplicateIdError(self.kind, entity_id)
        self._items[entity_id] = entity
        return entity

    def remove(self, entity_id: str) -> T:
        """Remove and return an entity."""
        if entity_id not in self._items:
            raise NotFoundError(self.kind, entity_id)
        return self._items.pop(entity_id)

    def replace_all(self, entities: Iterable[T]) -> list[str]:
        """Reset contents, keeping the first entity for each repeated id.

        Returns:
            Ids that appeared more than once
        """
        self._items.clear()
        duplicates = []
        for entity in entities:
            entity_id = self._key(entity)
            if entity_id in self._items:
                duplicates.append(entity_id)
                continue
            self._items[entity_id] = entity
        return duplicates


class EntityStore:
    """The three registries of the catalog."""

    def __init__(self):
        self.documents: Registry[Document] = Registry("Document", lambda d: d.id)
        self.users: Registry[User] = Registry("User", lambda u: u.user_id)
        self.loans: Registry[Loan] = Registry("Loan", lambda loan: loan.loan_id)

    def outstanding_loan_for(self, document_id: str) -> Optional[Loan]:
        """Get the non-returned loan of a document, if any."""
        for loan in self.loans:
            if loan.document_id == document_id and not loan.is_returned:
                return loan
        return None

    def remove_document(self, document_id: str) -> Document:
        """Remove a document that is not on loan.

        Raises:
            NotFoundError: If the document does not exist
            ReferentialIntegrityError: If the document is on loan
        """
        document = self.documents.require(document_id)
        if not document.available or self.outstanding_loan_for(document_id):
            raise ReferentialIntegrityError(
                f"Cannot remove document {document_id} while it is on loan",
                f"Document {document_id} is on loan and cannot be removed.",
            )
        return self.documents.remove(document_id)

