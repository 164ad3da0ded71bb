from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from bayorder.domain.common.ids import UserId


class Role(str, Enum):
    ANONYMOUS = "anonymous"
    OWNER = "owner"
    ADMIN = "admin"


@dataclass(frozen=True)
class Identity:
    uid: UserId
    role: Role
    token: str
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class IdentityProvider(Protocol):
    def sign_in_anonymously(self) -> Identity: ...

    def sign_in_with_password(self, email: str, password: str) -> Identity: ...

    def register_account(self, email: str, password: str, role: Role) -> UserId: ...

    def verify_token(self, token: str) -> Identity: ...


class InvalidCredentialsError(Exception):
    pass


class InvalidTokenError(Exception):
    pass


class AccountExistsError(Exception):
    pass
