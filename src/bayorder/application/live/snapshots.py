from __future__ import annotations

import copy
from dataclasses import dataclass
from enum import Enum
from typing import Any

from bayorder.application.ports.store import Document


class ChangeKind(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass(frozen=True)
class DocumentChange:
    kind: ChangeKind
    document: Document


class SnapshotDiffer:
    """Turns whole-result-set redeliveries into added/modified/removed events.

    A redelivery that matches the previous snapshot exactly yields no events,
    so consumers only react to real transitions.
    """

    def __init__(self) -> None:
        self._previous: dict[str, dict[str, Any]] = {}
        self._order: list[str] = []
        self._primed = False

    @property
    def primed(self) -> bool:
        return self._primed

    def apply(self, documents: list[Document]) -> list[DocumentChange]:
        current = {document.id: document for document in documents}
        changes: list[DocumentChange] = []

        for doc_id in self._order:
            if doc_id not in current:
                changes.append(DocumentChange(ChangeKind.REMOVED, Document(doc_id, self._previous[doc_id])))

        for document in documents:
            before = self._previous.get(document.id)
            if before is None:
                changes.append(DocumentChange(ChangeKind.ADDED, document))
            elif before != document.data:
                changes.append(DocumentChange(ChangeKind.MODIFIED, document))

        self._previous = {doc_id: copy.deepcopy(document.data) for doc_id, document in current.items()}
        self._order = [document.id for document in documents]
        self._primed = True
        return changes

    def reset(self) -> None:
        self._previous = {}
        self._order = []
        self._primed = False
