from .coordinator import VerificationStage, build_message, verify_certificate_credential
from .errors import CertificateExtractionError, CertificateVerificationError
from .extraction import STRATEGY_BATTERY, ExtractionStrategy, extract_certificate_text
from .matching import CredentialMatch, match_credential, similarity, verify_credential_id
from .title_verifier import TitleVerifier, get_title_verifier

__all__ = [
    "CertificateExtractionError",
    "CertificateVerificationError",
    "CredentialMatch",
    "ExtractionStrategy",
    "STRATEGY_BATTERY",
    "TitleVerifier",
    "VerificationStage",
    "build_message",
    "extract_certificate_text",
    "get_title_verifier",
    "match_credential",
    "similarity",
    "verify_certificate_credential",
    "verify_credential_id",
]
