from __future__ import annotations

from bayorder.application.mappers.cafe_mapper import cafe_from_document
from bayorder.application.mappers.collections import CAFES
from bayorder.application.ports.identity import Identity
from bayorder.application.ports.store import DocumentStore, FieldOp, Query
from bayorder.domain.cafe.entities import Cafe
from bayorder.domain.common.ids import CafeId, UserId


class CafeNotFoundError(Exception):
    pass


class PermissionDeniedError(Exception):
    pass


def load_cafe(store: DocumentStore, cafe_id: CafeId) -> Cafe:
    document = store.get(CAFES, str(cafe_id))
    if document is None:
        raise CafeNotFoundError(f"cafe {cafe_id} not found")
    return cafe_from_document(document)


def require_owner(cafe: Cafe, identity: Identity | None) -> None:
    if identity is None or not cafe.is_owned_by(identity.uid):
        raise PermissionDeniedError(f"caller is not the owner of cafe {cafe.cafe_id}")


def require_admin(identity: Identity | None) -> None:
    if identity is None or not identity.is_admin:
        raise PermissionDeniedError("admin privileges required")


def find_cafe_for_owner(store: DocumentStore, uid: UserId) -> Cafe | None:
    documents = store.query(Query(collection=CAFES).where("ownerUserId", FieldOp.EQ, str(uid)).limited(1))
    if not documents:
        return None
    return cafe_from_document(documents[0])
