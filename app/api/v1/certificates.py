from fastapi import APIRouter, File, Form, Header, HTTPException, Request, UploadFile, status

from app.certificates import verify_certificate_credential
from app.certificates.uploads import (
    CERTIFICATE_TYPE_ERROR,
    discard_certificate,
    should_verify_certificate,
    stage_certificate,
    validate_certificate_upload,
)
from app.core.rate_limit import rate_limit
from app.core.security import check_api_key
from app.schemas.certificates import VerificationResult

router = APIRouter()


@router.post("/certificates/verify", response_model=VerificationResult)
@rate_limit()
async def verify_certificate(
    request: Request,
    certificate: UploadFile = File(...),
    credential_id: str = Form(...),
    skill_title: str = Form(...),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
):
    _ = request
    check_api_key(x_api_key)

    if not should_verify_certificate(certificate.content_type):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=CERTIFICATE_TYPE_ERROR)

    content = await certificate.read()
    filename = certificate.filename or ""
    try:
        validate_certificate_upload(filename=filename, content_type=certificate.content_type, content=content)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    staged = stage_certificate(filename, content)
    try:
        return await verify_certificate_credential(staged, credential_id, skill_title)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    finally:
        discard_certificate(staged)
