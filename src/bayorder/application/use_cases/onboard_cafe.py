from __future__ import annotations

import logging
import os
import secrets
import string

from bayorder.application.live.queries import all_cafes_query
from bayorder.application.mappers.cafe_mapper import cafe_from_document, cafe_to_document
from bayorder.application.mappers.collections import CAFES
from bayorder.application.ports.identity import Identity, IdentityProvider, Role
from bayorder.application.ports.store import SERVER_TIMESTAMP, DocumentStore, WriteBatch
from bayorder.application.use_cases.access import require_admin
from bayorder.domain.cafe.entities import Cafe, OwnerCredentials, default_tables
from bayorder.domain.common.ids import CafeId

logger = logging.getLogger(__name__)

_CREDENTIAL_ALPHABET = string.ascii_lowercase + string.digits
USERNAME_PREFIX = "cafe_"
USERNAME_SUFFIX_LENGTH = 6
PASSWORD_LENGTH = 8


def owner_email_domain() -> str:
    return os.getenv("OWNER_EMAIL_DOMAIN", "owner.bayorder.app")


def owner_email(username: str) -> str:
    return f"{username}@{owner_email_domain()}"


def generate_credentials() -> OwnerCredentials:
    suffix = "".join(secrets.choice(_CREDENTIAL_ALPHABET) for _ in range(USERNAME_SUFFIX_LENGTH))
    password = "".join(secrets.choice(_CREDENTIAL_ALPHABET) for _ in range(PASSWORD_LENGTH))
    return OwnerCredentials(username=f"{USERNAME_PREFIX}{suffix}", password=password)


class OnboardCafe:
    """Admin creates a cafe with vacant tables T1..Tn and fresh owner credentials.

    The owner account is registered with the identity provider up front; the
    cafe keeps ``ownerUserId = "pending"`` until the owner first signs in.
    """

    def __init__(self, store: DocumentStore, identity_provider: IdentityProvider) -> None:
        self._store = store
        self._identity_provider = identity_provider

    def execute(self, identity: Identity | None, name: str, address: str, table_count: int) -> Cafe:
        require_admin(identity)

        credentials = generate_credentials()
        cafe = Cafe(
            cafe_id=CafeId(self._store.new_id()),
            name=name.strip(),
            address=address.strip(),
            tables=default_tables(table_count),
            credentials=credentials,
            table_count=table_count,
        )

        self._identity_provider.register_account(
            owner_email(credentials.username),
            credentials.password,
            Role.OWNER,
        )
        document = cafe_to_document(cafe)
        document["createdAt"] = SERVER_TIMESTAMP
        self._store.commit(WriteBatch().create(CAFES, str(cafe.cafe_id), document))

        logger.info(
            "cafe_onboarded",
            extra={"cafe_id": str(cafe.cafe_id), "table_count": table_count},
        )
        return cafe


class ListCafes:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def execute(self, identity: Identity | None) -> list[Cafe]:
        require_admin(identity)
        return [cafe_from_document(document) for document in self._store.query(all_cafes_query())]
