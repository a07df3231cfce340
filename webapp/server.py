"""ASGI application exposing the application portal API."""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from amoportal.config import Settings
from amoportal.localization import DEFAULT_LANGUAGE_CODE, TextPack, get_text_pack
from amoportal.services.applications import ApplicationService
from amoportal.services.errors import (
    AuthenticationRequiredError,
    MemberNotFoundError,
    PortalError,
    ValidationError,
)
from amoportal.services.forms import parse_submission
from amoportal.services.gateway import GuildGateway
from amoportal.services.notifier import ApplicationNotifier
from amoportal.services.security import AdminAuthenticator, EncryptionManager
from amoportal.services.slack import SlackRelay
from amoportal.services.storage import APPLICATION_TYPES, Storage

LOGGER = logging.getLogger(__name__)

CONFIG_PATH = Path("config/settings.yaml")
EXAMPLE_CONFIG_PATH = Path("config/settings.example.yaml")
SESSION_COOKIE = "portal_admin_session"
REVIEW_ACTIONS = ("accept", "reject")


def _resolve_config_path() -> Path:
    if CONFIG_PATH.exists():
        return CONFIG_PATH
    return EXAMPLE_CONFIG_PATH


def _load_settings() -> Settings:
    path = _resolve_config_path()
    if not path.exists():
        LOGGER.warning("No configuration file found; using defaults")
        return Settings()
    return Settings.load(path)


def _log_task_exceptions(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        LOGGER.error("Background task %s failed", task.get_name(), exc_info=exc)


async def sweep_expired_sessions(storage: Storage, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        removed = await storage.clean_expired_sessions()
        if removed:
            LOGGER.info("admin_sessions_swept", extra={"removed": removed})


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings or _load_settings()
    storage: Storage = app.state.storage or Storage()

    gateway = app.state.gateway_override
    owns_gateway = gateway is None
    tasks: List[asyncio.Task] = []
    if owns_gateway:
        gateway = GuildGateway(settings.discord)
        token = settings.get_bot_token()
        if token:
            tasks.append(asyncio.create_task(gateway.start(token), name="discord-gateway"))
        else:
            LOGGER.warning("No Discord bot token in %s; gateway disabled", settings.discord.bot_token_env)

    slack = app.state.slack
    if slack is None:
        slack = SlackRelay.from_token(settings.get_slack_token(), settings.slack.channel_id)

    service = ApplicationService(storage, gateway, settings.discord)
    notifier = ApplicationNotifier(
        gateway,
        settings.discord,
        service,
        texts=get_text_pack(settings.webapp.default_language),
        slack=slack,
    )
    service.attach_notifier(notifier)
    gateway.set_decision_handler(notifier.handle_decision)

    authenticator = AdminAuthenticator(
        settings.admin.username,
        settings.get_admin_password(),
        EncryptionManager(settings.get_secret_key()),
    )
    tasks.append(
        asyncio.create_task(
            sweep_expired_sessions(storage, settings.admin.session_sweep_interval),
            name="session-sweeper",
        )
    )
    for task in tasks:
        task.add_done_callback(_log_task_exceptions)

    app.state.settings = settings
    app.state.storage = storage
    app.state.gateway = gateway
    app.state.service = service
    app.state.authenticator = authenticator

    try:
        yield
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if owns_gateway and not gateway.is_closed():
            await gateway.close()


async def get_storage(request: Request) -> Storage:
    return request.app.state.storage  # type: ignore[return-value]


async def get_settings(request: Request) -> Settings:
    return request.app.state.settings  # type: ignore[return-value]


async def get_service(request: Request) -> ApplicationService:
    return request.app.state.service  # type: ignore[return-value]


async def get_authenticator(request: Request) -> AdminAuthenticator:
    return request.app.state.authenticator  # type: ignore[return-value]


def _texts_for(request: Request) -> TextPack:
    settings: Optional[Settings] = getattr(request.app.state, "settings", None)
    default = settings.webapp.default_language if settings else DEFAULT_LANGUAGE_CODE
    return get_text_pack(request.headers.get("accept-language"), default=default)


async def get_texts(request: Request) -> TextPack:
    return _texts_for(request)


async def require_admin(
    request: Request,
    storage: Storage = Depends(get_storage),
    authenticator: AdminAuthenticator = Depends(get_authenticator),
) -> str:
    session_id = await authenticator.unseal(request.cookies.get(SESSION_COOKIE))
    if session_id is None or storage.get_admin_session(session_id) is None:
        raise AuthenticationRequiredError("admin session missing or expired")
    return session_id


def _internal_error(message: str, context: str) -> HTTPException:
    LOGGER.exception("Unhandled error in %s", context)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


async def _portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    texts = _texts_for(request)
    if exc.status_code >= 500:
        LOGGER.error("%s on %s: %s", type(exc).__name__, request.url.path, exc)
    content: Dict[str, Any] = {"message": getattr(texts, exc.text_key, texts.error_generic)}
    if exc.errors is not None:
        content["errors"] = jsonable_encoder(exc.errors)
    return JSONResponse(status_code=exc.status_code, content=content)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    texts = _texts_for(request)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": texts.api_invalid_data, "errors": jsonable_encoder(exc.errors())},
    )


async def _http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)


def create_app(
    settings: Optional[Settings] = None,
    *,
    storage: Optional[Storage] = None,
    gateway: Any = None,
    slack: Optional[SlackRelay] = None,
) -> FastAPI:
    application = FastAPI(title="Application Portal", lifespan=lifespan)
    application.state.settings = settings
    application.state.storage = storage
    application.state.gateway = gateway
    application.state.gateway_override = gateway
    application.state.slack = slack

    application.add_exception_handler(PortalError, _portal_error_handler)
    application.add_exception_handler(RequestValidationError, _request_validation_handler)
    application.add_exception_handler(HTTPException, _http_error_handler)
    _register_routes(application)
    return application


def _register_routes(app: FastAPI) -> None:
    @app.post("/api/verify-discord")
    async def verify_discord(
        request: Request,
        payload: Optional[Dict[str, Any]] = Body(None),
        texts: TextPack = Depends(get_texts),
    ) -> Dict[str, Any]:
        username = (payload or {}).get("username")
        if isinstance(username, str):
            username = username.strip()
        if not isinstance(username, str) or not username:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=texts.api_username_required)

        try:
            member = await request.app.state.gateway.verify_member(username)
        except MemberNotFoundError:
            raise
        except PortalError as exc:
            LOGGER.error("Discord verification failed for %s: %s", username, exc)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=texts.api_verification_failed,
            ) from exc
        except Exception as exc:
            raise _internal_error(texts.api_verification_failed, "verify-discord") from exc
        return {"verified": True, "userId": member.user_id}

    @app.post("/api/applications")
    async def submit_application(
        payload: Optional[Dict[str, Any]] = Body(None),
        service: ApplicationService = Depends(get_service),
        texts: TextPack = Depends(get_texts),
    ) -> Dict[str, Any]:
        submission = parse_submission(payload or {})
        try:
            result = await service.submit(submission)
        except PortalError:
            raise
        except Exception as exc:
            raise _internal_error(texts.api_submission_failed, "submit-application") from exc
        return {"success": True, "applicationId": result.application.id}

    @app.post("/api/admin/login")
    async def admin_login(
        response: Response,
        payload: Optional[Dict[str, Any]] = Body(None),
        storage: Storage = Depends(get_storage),
        settings: Settings = Depends(get_settings),
        authenticator: AdminAuthenticator = Depends(get_authenticator),
        texts: TextPack = Depends(get_texts),
    ) -> Dict[str, Any]:
        payload = payload or {}
        if not authenticator.check_credentials(payload.get("username"), payload.get("password")):
            LOGGER.info("admin_login_rejected")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=texts.api_login_invalid)

        ttl = settings.admin.session_ttl
        try:
            session = await storage.create_admin_session(ttl)
            token = await authenticator.seal(session.session_id)
        except Exception as exc:
            raise _internal_error(texts.api_login_failed, "admin-login") from exc
        response.set_cookie(
            SESSION_COOKIE,
            token,
            max_age=int(ttl.total_seconds()),
            httponly=True,
            samesite="lax",
        )
        LOGGER.info("admin_login", extra={"expires_at": session.expires_at.isoformat()})
        return {"success": True}

    @app.post("/api/admin/logout")
    async def admin_logout(
        request: Request,
        response: Response,
        storage: Storage = Depends(get_storage),
        authenticator: AdminAuthenticator = Depends(get_authenticator),
        texts: TextPack = Depends(get_texts),
    ) -> Dict[str, Any]:
        try:
            session_id = await authenticator.unseal(request.cookies.get(SESSION_COOKIE))
            if session_id is not None:
                await storage.delete_admin_session(session_id)
        except Exception as exc:
            raise _internal_error(texts.api_logout_failed, "admin-logout") from exc
        response.delete_cookie(SESSION_COOKIE)
        return {"success": True}

    @app.get("/api/application-settings")
    async def application_settings(
        storage: Storage = Depends(get_storage),
        texts: TextPack = Depends(get_texts),
    ) -> Dict[str, bool]:
        try:
            return storage.get_application_settings_map()
        except Exception as exc:
            raise _internal_error(texts.api_settings_fetch_failed, "application-settings") from exc

    @app.put("/api/application-settings/{application_type}")
    async def update_application_settings(
        application_type: str,
        payload: Optional[Dict[str, Any]] = Body(None),
        _session: str = Depends(require_admin),
        storage: Storage = Depends(get_storage),
        texts: TextPack = Depends(get_texts),
    ) -> Dict[str, Any]:
        if application_type not in APPLICATION_TYPES:
            raise ValidationError(f"unknown type {application_type}", text_key="api_invalid_application_type")
        is_open = (payload or {}).get("isOpen")
        if not isinstance(is_open, bool):
            raise ValidationError("isOpen must be a boolean", text_key="api_is_open_not_boolean")

        try:
            record = await storage.update_application_settings(application_type, is_open)
        except Exception as exc:
            raise _internal_error(texts.api_settings_update_failed, "update-application-settings") from exc
        return record.to_dict()

    @app.get("/api/applications")
    async def list_applications(
        _session: str = Depends(require_admin),
        storage: Storage = Depends(get_storage),
        texts: TextPack = Depends(get_texts),
    ) -> List[Dict[str, Any]]:
        try:
            return [application.to_dict() for application in storage.get_applications()]
        except Exception as exc:
            raise _internal_error(texts.api_applications_fetch_failed, "list-applications") from exc

    @app.post("/api/applications/{application_id}/respond")
    async def respond_to_application(
        application_id: str,
        payload: Optional[Dict[str, Any]] = Body(None),
        service: ApplicationService = Depends(get_service),
        texts: TextPack = Depends(get_texts),
    ) -> Dict[str, Any]:
        payload = payload or {}
        action = payload.get("action")
        if action not in REVIEW_ACTIONS:
            raise ValidationError(f"unsupported action {action!r}", text_key="api_invalid_action")
        user_id = payload.get("userId")
        if user_id is not None and (isinstance(user_id, bool) or not isinstance(user_id, (str, int))):
            raise ValidationError("userId must be a string")

        try:
            result = await service.record_decision(
                application_id,
                action,
                user_id=str(user_id) if user_id is not None else None,
            )
        except PortalError:
            raise
        except Exception as exc:
            raise _internal_error(texts.api_respond_failed, "respond-to-application") from exc
        LOGGER.info(
            "application_reviewed_via_webhook",
            extra={"application_id": application_id, "action": action, "role_assigned": result.role_assigned},
        )
        return {"success": True}

    @app.get("/api/health")
    async def health(request: Request) -> Dict[str, Any]:
        gateway = request.app.state.gateway
        return {"status": "ok", "discordReady": bool(gateway is not None and gateway.ready)}


app = create_app()


__all__ = ["app", "create_app", "sweep_expired_sessions"]
