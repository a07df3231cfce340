"""Arabic and English text packs for API messages and Discord replies."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class TextPack:
    api_username_required: str
    api_member_not_found: str
    api_verification_failed: str
    api_application_closed: str
    api_invalid_data: str
    api_oath_invalid: str
    api_submission_failed: str
    api_login_invalid: str
    api_login_failed: str
    api_logout_failed: str
    api_admin_required: str
    api_settings_fetch_failed: str
    api_invalid_application_type: str
    api_is_open_not_boolean: str
    api_settings_update_failed: str
    api_applications_fetch_failed: str
    api_application_not_found: str
    api_invalid_action: str
    api_application_already_reviewed: str
    api_respond_failed: str
    api_configuration_error: str
    api_upstream_error: str
    api_not_found: str
    api_forbidden: str
    api_conflict: str
    error_generic: str
    application_type_names: Dict[str, str]
    application_field_labels: Dict[str, str]
    embed_title: str
    embed_username_label: str
    embed_type_label: str
    embed_id_label: str
    embed_decision_label: str
    embed_decision_value: str
    embed_reviewed_at_label: str
    decision_action_texts: Dict[str, str]
    review_buttons: Dict[str, str]
    yes: str
    no: str
    discord_reviewer_only: str
    discord_already_decided: str
    slack_application_summary: str


ARABIC_TEXTS = TextPack(
    api_username_required="اسم المستخدم مطلوب",
    api_member_not_found="المستخدم غير موجود في السيرفر",
    api_verification_failed="خطأ في التحقق من العضوية",
    api_application_closed="التقديم مغلق حالياً",
    api_invalid_data="بيانات غير صحيحة",
    api_oath_invalid="يجب كتابة القسم بالضبط كما هو مطلوب",
    api_submission_failed="خطأ في إرسال التقديم",
    api_login_invalid="بيانات تسجيل الدخول غير صحيحة",
    api_login_failed="خطأ في تسجيل الدخول",
    api_logout_failed="خطأ في تسجيل الخروج",
    api_admin_required="يجب تسجيل الدخول كمسؤول",
    api_settings_fetch_failed="خطأ في جلب إعدادات التقديم",
    api_invalid_application_type="نوع تقديم غير صحيح",
    api_is_open_not_boolean="قيمة isOpen يجب أن تكون boolean",
    api_settings_update_failed="خطأ في تحديث إعدادات التقديم",
    api_applications_fetch_failed="خطأ في جلب التقديمات",
    api_application_not_found="التقديم غير موجود",
    api_invalid_action="الإجراء يجب أن يكون accept أو reject",
    api_application_already_reviewed="تمت مراجعة هذا التقديم مسبقاً",
    api_respond_failed="خطأ في معالجة رد التقديم",
    api_configuration_error="لم يتم تكوين السيرفر بشكل صحيح. يرجى المحاولة لاحقاً",
    api_upstream_error="لا يمكن التحقق من عضويتك في السيرفر. تأكد من اسم المستخدم أو حاول لاحقاً",
    api_not_found="العنصر غير موجود",
    api_forbidden="غير مسموح",
    api_conflict="تعارض في حالة الطلب",
    error_generic="⚠️ حدث خطأ غير متوقع. يرجى المحاولة مجدداً.",
    application_type_names={
        "admin": "الإدارة",
        "script": "نشر السكربتات",
        "hacks": "نشر الهاكات",
    },
    application_field_labels={
        "name": "الاسم",
        "age": "العمر",
        "country": "الدولة",
        "benefit": "كيف ستفيد السيرفر",
        "experience": "الخبرة في Discord",
        "responsibility": "تحمل المسؤولية",
        "oath": "القسم",
        "languages": "لغات البرمجة",
        "maps": "الخرائط",
        "frequency": "تكرار النشر",
        "serverLogo": "شعار السيرفر",
        "previousServers": "سيرفرات سابقة",
        "hackTypes": "أنواع الهاكات",
        "activeHours": "ساعات النشاط",
    },
    embed_title="طلب {type_name}",
    embed_username_label="اسم المستخدم في Discord",
    embed_type_label="نوع التقديم",
    embed_id_label="ID التقديم",
    embed_decision_label="📋 حالة التقديم",
    embed_decision_value="**{action}** بواسطة <@{user_id}>",
    embed_reviewed_at_label="⏰ تاريخ المراجعة",
    decision_action_texts={
        "accept": "قُبِل",
        "reject": "رُفِض",
    },
    review_buttons={
        "accept": "قبول",
        "reject": "رفض",
    },
    yes="نعم",
    no="لا",
    discord_reviewer_only="ليس لديك صلاحية للتعامل مع التقديمات.",
    discord_already_decided="تمت مراجعة هذا التقديم مسبقاً ({status}).",
    slack_application_summary="📨 تقديم جديد ({type_name}) من {username} | {application_id}",
)


ENGLISH_TEXTS = TextPack(
    api_username_required="A username is required.",
    api_member_not_found="The user was not found in the server.",
    api_verification_failed="Membership verification failed.",
    api_application_closed="Applications are currently closed.",
    api_invalid_data="Invalid data.",
    api_oath_invalid="The oath must be written exactly as required.",
    api_submission_failed="Failed to submit the application.",
    api_login_invalid="Invalid login credentials.",
    api_login_failed="Login failed.",
    api_logout_failed="Logout failed.",
    api_admin_required="Admin login required.",
    api_settings_fetch_failed="Failed to load application settings.",
    api_invalid_application_type="Invalid application type.",
    api_is_open_not_boolean="isOpen must be a boolean.",
    api_settings_update_failed="Failed to update application settings.",
    api_applications_fetch_failed="Failed to load applications.",
    api_application_not_found="Application not found.",
    api_invalid_action="The action must be accept or reject.",
    api_application_already_reviewed="This application has already been reviewed.",
    api_respond_failed="Failed to process the application response.",
    api_configuration_error="The server is not configured correctly. Please try again later.",
    api_upstream_error="Your membership could not be checked. Verify your username or try again later.",
    api_not_found="Not found.",
    api_forbidden="Forbidden.",
    api_conflict="Conflicting application state.",
    error_generic="⚠️ Something went wrong. Please try again.",
    application_type_names={
        "admin": "Administration",
        "script": "Script publishing",
        "hacks": "Hacks publishing",
    },
    application_field_labels={
        "name": "Name",
        "age": "Age",
        "country": "Country",
        "benefit": "How you will help the server",
        "experience": "Discord experience",
        "responsibility": "Accepts responsibility",
        "oath": "Oath",
        "languages": "Programming languages",
        "maps": "Maps",
        "frequency": "Publishing frequency",
        "serverLogo": "Server logo",
        "previousServers": "Previous servers",
        "hackTypes": "Hack types",
        "activeHours": "Active hours",
    },
    embed_title="{type_name} application",
    embed_username_label="Discord username",
    embed_type_label="Application type",
    embed_id_label="Application ID",
    embed_decision_label="📋 Application status",
    embed_decision_value="**{action}** by <@{user_id}>",
    embed_reviewed_at_label="⏰ Reviewed at",
    decision_action_texts={
        "accept": "Accepted",
        "reject": "Rejected",
    },
    review_buttons={
        "accept": "Accept",
        "reject": "Reject",
    },
    yes="Yes",
    no="No",
    discord_reviewer_only="You are not allowed to handle applications.",
    discord_already_decided="This application was already reviewed ({status}).",
    slack_application_summary="📨 New {type_name} application from {username} | {application_id}",
)


DEFAULT_LANGUAGE_CODE = "ar"
AVAILABLE_LANGUAGE_CODES = ("ar", "en")

_TEXT_PACKS: Dict[str, TextPack] = {
    "ar": ARABIC_TEXTS,
    "en": ENGLISH_TEXTS,
}


def normalize_language_code(language_code: str | None) -> str | None:
    """Reduce a language tag or an Accept-Language header to its primary subtag."""

    if not language_code:
        return None
    first = language_code.split(",")[0].split(";")[0].strip()
    if not first:
        return None
    return first.split("-")[0].lower()


def get_text_pack(language_code: str | None, default: str = DEFAULT_LANGUAGE_CODE) -> TextPack:
    normalised = normalize_language_code(language_code)
    if normalised and normalised in _TEXT_PACKS:
        return _TEXT_PACKS[normalised]
    return _TEXT_PACKS.get(default, ARABIC_TEXTS)
