from __future__ import annotations


class CertificateVerificationError(RuntimeError):
    def __init__(self, message: str, *, code: str = "verification_failed"):
        super().__init__(message)
        self.code = code


class CertificateExtractionError(CertificateVerificationError):
    def __init__(self, message: str = "Failed to extract text from certificate"):
        super().__init__(message, code="extraction_failed")
