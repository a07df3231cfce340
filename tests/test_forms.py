from __future__ import annotations

import pytest

from amoportal.services.errors import ValidationError
from amoportal.services.forms import AdminSubmission, HacksSubmission, ScriptSubmission, parse_submission
from amoportal.services.oath import REQUIRED_OATH


def _admin_payload(**overrides: object) -> dict:
    form = {
        "name": "Ali",
        "age": 20,
        "country": "Iraq",
        "benefit": "moderation",
        "experience": "two years",
        "responsibility": True,
        "oath": REQUIRED_OATH,
    }
    form.update(overrides)
    return {"type": "admin", "discordUsername": "ali", "formData": form}


def test_admin_submission_is_parsed() -> None:
    submission = parse_submission(_admin_payload())
    assert isinstance(submission, AdminSubmission)
    assert submission.discord_username == "ali"
    assert submission.discord_user_id is None
    form_data = submission.form_data.as_form_data()
    assert form_data["age"] == "20"
    assert form_data["responsibility"] is True


def test_wrong_oath_is_reported() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_submission(_admin_payload(oath="hello"))
    assert excinfo.value.text_key == "api_oath_invalid"
    assert any(error["loc"][-1] == "oath" for error in excinfo.value.errors)


def test_responsibility_must_be_accepted() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_submission(_admin_payload(responsibility=False))
    assert excinfo.value.text_key == "api_invalid_data"
    assert excinfo.value.status_code == 400


def test_missing_field_is_reported() -> None:
    payload = _admin_payload()
    del payload["formData"]["country"]
    with pytest.raises(ValidationError) as excinfo:
        parse_submission(payload)
    assert any(error["loc"][-1] == "country" for error in excinfo.value.errors)


def test_blank_field_is_rejected() -> None:
    with pytest.raises(ValidationError):
        parse_submission(_admin_payload(name="   "))


def test_unknown_type_is_rejected() -> None:
    with pytest.raises(ValidationError):
        parse_submission({"type": "moderator", "discordUsername": "x", "formData": {}})


def test_script_submission() -> None:
    submission = parse_submission(
        {
            "type": "script",
            "discordUsername": "coder",
            "discordUserId": 123456789012345678,
            "formData": {
                "name": "Sara",
                "age": "22",
                "languages": "Lua",
                "experience": "3 years",
                "maps": "desert",
                "frequency": "weekly",
            },
        }
    )
    assert isinstance(submission, ScriptSubmission)
    assert submission.discord_user_id == "123456789012345678"


def test_hacks_submission_keeps_camel_case_keys() -> None:
    submission = parse_submission(
        {
            "type": "hacks",
            "discordUsername": "h",
            "formData": {
                "name": "N",
                "age": "30",
                "serverLogo": "logo.png",
                "previousServers": "none",
                "hackTypes": "aimbot",
                "activeHours": "night",
            },
        }
    )
    assert isinstance(submission, HacksSubmission)
    assert set(submission.form_data.as_form_data()) == {
        "name",
        "age",
        "serverLogo",
        "previousServers",
        "hackTypes",
        "activeHours",
    }
