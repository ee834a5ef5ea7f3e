from fastapi import APIRouter

from app.certificates import get_title_verifier

router = APIRouter()


@router.get("/health", summary="Health Check", description="Check the health status of the verification service.")
async def health_check():
    verifier = get_title_verifier()
    return {
        "status": "healthy",
        "title_verification": "enabled" if verifier.configured else "disabled",
    }
