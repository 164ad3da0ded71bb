from __future__ import annotations

from fastapi import APIRouter, Depends

from bayorder.api.deps import current_identity, get_identity_provider, get_store
from bayorder.application.dto.requests import LoginRequest
from bayorder.application.dto.responses import AuthResponse
from bayorder.application.ports.identity import Identity
from bayorder.application.use_cases.sign_in import ResolveOwnerCafe, SignIn

router = APIRouter(prefix="/v1/auth", tags=["auth"])


def _auth_response(identity: Identity, cafe_id: str | None = None) -> AuthResponse:
    return AuthResponse(token=identity.token, uid=str(identity.uid), role=identity.role.value, cafeId=cafe_id)


@router.post("/login", response_model=AuthResponse)
def login(request_dto: LoginRequest) -> AuthResponse:
    result = SignIn(get_store(), get_identity_provider()).execute(request_dto.username, request_dto.password)
    return _auth_response(result.identity, str(result.cafe_id) if result.cafe_id else None)


@router.post("/anonymous", response_model=AuthResponse)
def anonymous() -> AuthResponse:
    return _auth_response(get_identity_provider().sign_in_anonymously())


@router.get("/me", response_model=AuthResponse)
def me(identity: Identity = Depends(current_identity)) -> AuthResponse:
    cafe_id = ResolveOwnerCafe(get_store()).execute(identity)
    return _auth_response(identity, str(cafe_id) if cafe_id else None)
