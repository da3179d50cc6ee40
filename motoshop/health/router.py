from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from motoshop.health.service import health_supabase_info
from motoshop.payments import stripe_client
from motoshop.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root(request: Request):
    return {
        "ok": True,
        "stripe_configured": stripe_client.is_configured(),
        "rate_limit": rate_limit_health_info(request),
    }

@router.get("/supabase")
def health_supabase():
    return JSONResponse(health_supabase_info())
