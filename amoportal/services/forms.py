"""Payload models for the three application forms."""
from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .oath import validate_oath

RequiredText = Annotated[str, Field(min_length=1, max_length=2000)]


class _FormBase(BaseModel):
    model_config = ConfigDict(
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
        populate_by_name=True,
    )

    name: RequiredText
    age: RequiredText

    def as_form_data(self) -> Dict[str, Union[str, bool]]:
        return self.model_dump(by_alias=True)


class AdminForm(_FormBase):
    country: RequiredText
    benefit: RequiredText
    experience: RequiredText
    responsibility: bool
    oath: RequiredText

    @field_validator("responsibility")
    @classmethod
    def _must_accept_responsibility(cls, value: bool) -> bool:
        if not value:
            raise ValueError("responsibility must be accepted")
        return value

    @field_validator("oath")
    @classmethod
    def _oath_matches(cls, value: str) -> str:
        if not validate_oath(value):
            raise ValueError("oath does not match the required text")
        return value


class ScriptForm(_FormBase):
    languages: RequiredText
    experience: RequiredText
    maps: RequiredText
    frequency: RequiredText


class HacksForm(_FormBase):
    server_logo: RequiredText = Field(alias="serverLogo")
    previous_servers: RequiredText = Field(alias="previousServers")
    hack_types: RequiredText = Field(alias="hackTypes")
    active_hours: RequiredText = Field(alias="activeHours")


class _SubmissionBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, coerce_numbers_to_str=True, populate_by_name=True)

    discord_username: Annotated[str, Field(min_length=1, max_length=100)] = Field(alias="discordUsername")
    discord_user_id: Optional[str] = Field(None, alias="discordUserId", max_length=32)


class AdminSubmission(_SubmissionBase):
    type: Literal["admin"]
    form_data: AdminForm = Field(alias="formData")


class ScriptSubmission(_SubmissionBase):
    type: Literal["script"]
    form_data: ScriptForm = Field(alias="formData")


class HacksSubmission(_SubmissionBase):
    type: Literal["hacks"]
    form_data: HacksForm = Field(alias="formData")


ApplicationSubmission = Annotated[
    Union[AdminSubmission, ScriptSubmission, HacksSubmission],
    Field(discriminator="type"),
]

_SUBMISSION_ADAPTER: TypeAdapter = TypeAdapter(ApplicationSubmission)


def _error_details(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    return exc.errors(include_url=False, include_context=False)


def parse_submission(payload: Any) -> Union[AdminSubmission, ScriptSubmission, HacksSubmission]:
    """Validate a raw request body, raising the portal ``ValidationError`` on failure."""

    try:
        return _SUBMISSION_ADAPTER.validate_python(payload)
    except PydanticValidationError as exc:
        details = _error_details(exc)
        text_key = "api_oath_invalid" if any(
            tuple(error.get("loc", ()))[-1:] == ("oath",) for error in details
        ) else None
        raise ValidationError("invalid application payload", text_key=text_key, errors=details) from exc


__all__ = [
    "AdminForm",
    "AdminSubmission",
    "ApplicationSubmission",
    "HacksForm",
    "HacksSubmission",
    "ScriptForm",
    "ScriptSubmission",
    "parse_submission",
]
