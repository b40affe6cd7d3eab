from fastapi import APIRouter

from claimdocs.api.v1.endpoints import claims, documents, ledger, policy_types, upload_tokens, users

# Operator API, mounted under the versioned prefix
api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["User"])
api_router.include_router(claims.router, prefix="/claims", tags=["Claims"])
api_router.include_router(ledger.router, prefix="/claims", tags=["Ledger"])
api_router.include_router(documents.router, tags=["Documents"])
api_router.include_router(upload_tokens.router, tags=["Upload Tokens"])
api_router.include_router(policy_types.router, prefix="/policy-types", tags=["Policy Types"])

__all__ = ["api_router"]
