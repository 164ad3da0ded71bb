from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from bayorder.application.mappers.cafe_mapper import cafe_from_document
from bayorder.application.mappers.collections import CAFES
from bayorder.application.ports.identity import (
    AccountExistsError,
    Identity,
    IdentityProvider,
    InvalidCredentialsError,
    Role,
)
from bayorder.application.ports.store import DocumentStore, FieldOp, Query, WriteBatch
from bayorder.application.use_cases.access import find_cafe_for_owner
from bayorder.application.use_cases.onboard_cafe import owner_email
from bayorder.domain.common.ids import CafeId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdminSettings:
    username: str
    password: str
    email: str

    @classmethod
    def from_env(cls) -> AdminSettings:
        return cls(
            username=os.getenv("ADMIN_USERNAME", "admin"),
            password=os.getenv("ADMIN_PASSWORD", "admin123"),
            email=os.getenv("ADMIN_EMAIL", "admin@bayorder.app"),
        )


@dataclass(frozen=True)
class SignInResult:
    identity: Identity
    cafe_id: CafeId | None = None


def ensure_admin_account(provider: IdentityProvider, settings: AdminSettings | None = None) -> None:
    settings = settings or AdminSettings.from_env()
    try:
        provider.register_account(settings.email, settings.password, Role.ADMIN)
    except AccountExistsError:
        return
    logger.info("admin_account_created", extra={"email": settings.email})


class SignIn:
    """Username/password sign-in for the platform admin and cafe owners.

    Owner usernames are looked up on the cafe documents and the stored
    password is checked before the identity provider is consulted. The first
    successful owner sign-in links the provider uid onto the cafe.
    """

    def __init__(
        self,
        store: DocumentStore,
        identity_provider: IdentityProvider,
        admin: AdminSettings | None = None,
    ) -> None:
        self._store = store
        self._identity_provider = identity_provider
        self._admin = admin or AdminSettings.from_env()

    def execute(self, username: str, password: str) -> SignInResult:
        username = username.strip()
        if not username or not password:
            raise InvalidCredentialsError("username and password are required")

        if username == self._admin.username and password == self._admin.password:
            identity = self._identity_provider.sign_in_with_password(self._admin.email, password)
            logger.info("admin_signed_in", extra={"uid": str(identity.uid)})
            return SignInResult(identity=identity)

        matches = self._store.query(
            Query(collection=CAFES).where("ownerUsername", FieldOp.EQ, username).limited(1)
        )
        if not matches:
            raise InvalidCredentialsError("invalid credentials")
        cafe = cafe_from_document(matches[0])
        if cafe.credentials is None or cafe.credentials.password != password:
            raise InvalidCredentialsError("invalid credentials")

        identity = self._identity_provider.sign_in_with_password(owner_email(username), password)
        if cafe.owner_user_id != identity.uid:
            self._store.commit(
                WriteBatch().update(CAFES, str(cafe.cafe_id), {"ownerUserId": str(identity.uid)})
            )
            logger.info(
                "cafe_owner_linked",
                extra={"cafe_id": str(cafe.cafe_id), "uid": str(identity.uid)},
            )
        return SignInResult(identity=identity, cafe_id=cafe.cafe_id)


class ResolveOwnerCafe:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def execute(self, identity: Identity) -> CafeId | None:
        cafe = find_cafe_for_owner(self._store, identity.uid)
        return cafe.cafe_id if cafe is not None else None
