from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Relationship = Literal["same", "subset", "superset", "related", "unrelated"]

RELEVANT_RELATIONSHIPS: frozenset[str] = frozenset({"same", "subset", "superset", "related"})

REVIEW_UNAVAILABLE_REASON = "AI verification is not configured."


class TitleVerdict(BaseModel):
    """Structured answer of the semantic title check.

    Field aliases follow the record shape the inference model is asked to return.
    """

    model_config = ConfigDict(populate_by_name=True)

    is_appropriate: bool = Field(alias="isAppropriate")
    inappropriate_reason: str = Field(default="", alias="inappropriateReason")
    is_relevant: bool = Field(alias="isRelevant")
    confidence: int = Field(ge=0, le=100)
    relationship: Relationship | None = None
    certificate_title: str = Field(default="", alias="certificateTitle")
    reason: str = ""

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: object) -> int:
        if isinstance(value, bool) or value is None:
            raise ValueError("confidence must be a number")
        number = float(value)
        return int(round(min(100.0, max(0.0, number))))

    @field_validator("relationship", mode="before")
    @classmethod
    def _normalize_relationship(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower() or None
        return value

    @field_validator("inappropriate_reason", "certificate_title", "reason", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    @model_validator(mode="after")
    def _unrelated_is_never_relevant(self) -> "TitleVerdict":
        if self.relationship == "unrelated" and self.is_relevant:
            self.is_relevant = False
        return self

    @property
    def success(self) -> bool:
        return self.is_relevant and self.is_appropriate

    @classmethod
    def failure(cls, reason: str, *, is_appropriate: bool) -> "TitleVerdict":
        return cls(
            is_appropriate=is_appropriate,
            inappropriate_reason="",
            is_relevant=False,
            confidence=0,
            relationship=None,
            certificate_title="",
            reason=reason,
        )

    @classmethod
    def unavailable(cls) -> "TitleVerdict":
        """Verdict used when no inference backend is configured; the title is not approved."""
        return cls.failure(REVIEW_UNAVAILABLE_REASON, is_appropriate=False)

    @property
    def review_unavailable(self) -> bool:
        return not self.is_appropriate and not self.inappropriate_reason and self.reason == REVIEW_UNAVAILABLE_REASON


class VerificationResult(BaseModel):
    success: bool
    credential_valid: bool
    title_valid: bool
    is_appropriate: bool
    inappropriate_reason: str = ""
    confidence: int = Field(default=0, ge=0, le=100)
    relationship: str = ""
    certificate_title: str = ""
    ai_reason: str = ""
    extracted_text: str = ""
    message: str
    error: str | None = None
