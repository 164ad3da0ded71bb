from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from bayorder.application.ports.store import StorePermissionError
from bayorder.application.use_cases.access import PermissionDeniedError


class EntryConfigurationError(Exception):
    pass


class NoticeKind(str, Enum):
    TRANSIENT = "transient"
    AUTHORIZATION = "authorization"


@dataclass(frozen=True)
class Notice:
    notice_id: int
    kind: NoticeKind
    source: str
    message: str


def notice_kind_for(exc: BaseException) -> NoticeKind:
    if isinstance(exc, (StorePermissionError, PermissionDeniedError)):
        return NoticeKind.AUTHORIZATION
    return NoticeKind.TRANSIENT


def default_notice_message(kind: NoticeKind) -> str:
    if kind == NoticeKind.AUTHORIZATION:
        return "You do not have permission to do that."
    return "Something went wrong. Please try again."
