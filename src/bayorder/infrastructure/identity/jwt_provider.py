from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from bayorder.application.mappers.collections import ACCOUNTS
from bayorder.application.ports.identity import (
    AccountExistsError,
    Identity,
    IdentityProvider,
    InvalidCredentialsError,
    InvalidTokenError,
    Role,
)
from bayorder.application.ports.store import (
    SERVER_TIMESTAMP,
    DocumentExistsError,
    DocumentStore,
    WriteBatch,
)
from bayorder.domain.common.ids import UserId

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


@dataclass(frozen=True)
class JwtSettings:
    secret_key: str
    algorithm: str = "HS256"
    expire_minutes: int = 720

    @classmethod
    def from_env(cls) -> JwtSettings:
        return cls(
            secret_key=os.getenv("JWT_SECRET_KEY", "dev-only-change-me"),
            algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            expire_minutes=int(os.getenv("JWT_EXPIRE_MINUTES", "720")),
        )


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


class JwtIdentityProvider(IdentityProvider):
    """Anonymous and email/password sign-in issuing signed bearer tokens.

    Accounts live in the ``accounts`` collection keyed by lower-cased email.
    """

    def __init__(self, store: DocumentStore, settings: JwtSettings | None = None) -> None:
        self._store = store
        self._settings = settings or JwtSettings.from_env()

    def sign_in_anonymously(self) -> Identity:
        uid = UserId(f"anon-{uuid.uuid4().hex}")
        return self._issue(uid, Role.ANONYMOUS, email=None)

    def register_account(self, email: str, password: str, role: Role) -> UserId:
        key = email.strip().lower()
        uid = UserId(self._store.new_id())
        batch = WriteBatch().create(
            ACCOUNTS,
            key,
            {
                "uid": str(uid),
                "email": key,
                "role": role.value,
                "passwordHash": hash_password(password),
                "createdAt": SERVER_TIMESTAMP,
            },
        )
        try:
            self._store.commit(batch)
        except DocumentExistsError as exc:
            raise AccountExistsError(f"account {key} already exists") from exc
        logger.info("account_registered", extra={"uid": str(uid), "role": role.value})
        return uid

    def sign_in_with_password(self, email: str, password: str) -> Identity:
        key = email.strip().lower()
        account = self._store.get(ACCOUNTS, key)
        if account is None or not verify_password(password, str(account.get("passwordHash", ""))):
            raise InvalidCredentialsError("invalid email or password")
        return self._issue(UserId(str(account.get("uid"))), Role(account.get("role")), email=key)

    def verify_token(self, token: str) -> Identity:
        try:
            claims = jwt.decode(token, self._settings.secret_key, algorithms=[self._settings.algorithm])
        except JWTError as exc:
            raise InvalidTokenError(f"invalid or expired token: {exc}") from exc
        try:
            role = Role(claims.get("role"))
        except ValueError as exc:
            raise InvalidTokenError("token carries an unknown role") from exc
        subject = claims.get("sub")
        if not subject:
            raise InvalidTokenError("token has no subject")
        return Identity(uid=UserId(subject), role=role, token=token, email=claims.get("email"))

    def _issue(self, uid: UserId, role: Role, email: str | None) -> Identity:
        payload: dict[str, Any] = {
            "sub": str(uid),
            "role": role.value,
            "exp": datetime.now(tz=timezone.utc) + timedelta(minutes=self._settings.expire_minutes),
            "jti": str(uuid.uuid4()),
        }
        if email:
            payload["email"] = email
        token = jwt.encode(payload, self._settings.secret_key, algorithm=self._settings.algorithm)
        return Identity(uid=uid, role=role, token=token, email=email)
