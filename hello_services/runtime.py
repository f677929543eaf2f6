"""Process runtime shared by the services: settings, logging and the listener."""

import logging
import socket
from datetime import datetime
from typing import Callable, Literal

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from starlette.concurrency import run_in_threadpool

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

GreetingMode = Literal["plain", "detailed"]

logger = structlog.get_logger()


class SettingsLoadError(RuntimeError):
    """Environment or .env values for a service process failed validation."""


class ListenerBindError(RuntimeError):
    """Raised when the TCP listener cannot be bound."""


class Settings(BaseSettings):
    """Per-process knobs for Service A or Service B.

    Every field is read from the upper-cased variable of the same name
    (`greeting_mode` <- `GREETING_MODE`), falling back to a local `.env`.

    Attributes:
        application_host: Interface the listener binds to.
        application_port: TCP port, 8080 unless overridden.
        log_level: Lowest structlog level that gets written.
        greeting_mode: `plain` or `detailed`; unset means the service picks its own.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    application_host: str = Field(default="0.0.0.0")
    application_port: int = Field(default=8080, ge=0, le=65535)
    log_level: Literal["debug", "info", "warning", "error", "critical"] = Field(default="info")
    greeting_mode: GreetingMode | None = Field(default=None)

    @field_validator("application_host")
    @classmethod
    def _validate_host(cls, value: str) -> str:
        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError("value must not be blank")
        return stripped_value

    @field_validator("log_level", "greeting_mode", mode="before")
    @classmethod
    def _normalize_case(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


def load_settings(**overrides) -> Settings:
    """Build `Settings` from the environment, `.env` and any explicit overrides.

    Raises:
        SettingsLoadError: Raised when a value does not validate.
    """

    try:
        return Settings(**overrides)
    except ValidationError as error:
        raise SettingsLoadError(f"invalid service settings: {error}") from error


def configure_logging(level: str = "info") -> None:
    """Route structlog output to the console, dropping events below `level`."""

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level.upper())),
        cache_logger_on_first_use=True,
    )


def resolve_hostname() -> str:
    """Return the OS hostname, or an empty string when the lookup fails."""

    try:
        return socket.gethostname()
    except OSError:
        return ""


def format_timestamp(clock: Callable[[], datetime]) -> str:
    """Render the clock's current reading as `YYYY-MM-DD HH:MM:SS`."""

    return clock().strftime(TIMESTAMP_FORMAT)


class PlainTextEndpoint:
    """ASGI endpoint answering every HTTP method with a rendered text body.

    Mounted as a class instance, Starlette applies no method filter to it,
    so unusual verbs such as TRACE or PURGE reach `render` as well.
    """

    def __init__(self, render: Callable[[], str]):
        self._render = render

    async def __call__(self, scope, receive, send) -> None:
        body = await run_in_threadpool(self._render)
        await PlainTextResponse(body)(scope, receive, send)


def add_text_route(app: FastAPI, path: str, render: Callable[[], str]) -> None:
    app.add_route(path, PlainTextEndpoint(render), include_in_schema=False)


def install_request_logging(app: FastAPI, service_name: str) -> None:
    """Attach a middleware that writes one `request_log` line per request."""

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info(
            "request_log",
            service=service_name,
            path=request.url.path,
            method=request.method,
            status=response.status_code,
            remote_addr=request.client.host if request.client else None,
        )
        return response


def bind_listener(host: str, port: int) -> socket.socket:
    """Bind a TCP socket for the server to listen on.

    Raises:
        ListenerBindError: Raised when the address cannot be bound, e.g. the port is in use.
    """

    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        listener.bind((host, port))
    except OSError as error:
        listener.close()
        raise ListenerBindError(f"cannot bind {host}:{port}: {error}") from error
    return listener


def run_service(app: FastAPI, settings: Settings, service_name: str) -> None:
    """Bind the listener and serve forever; exit with status 1 if binding fails."""

    logger.info(
        f"{service_name} starting on port {settings.application_port}",
        service=service_name,
        host=settings.application_host,
        port=settings.application_port,
    )
    try:
        listener = bind_listener(settings.application_host, settings.application_port)
    except ListenerBindError as error:
        logger.critical("server_failed_to_start", service=service_name, error=str(error))
        raise SystemExit(1) from error

    server = uvicorn.Server(
        uvicorn.Config(app, log_level=settings.log_level, access_log=False)
    )
    server.run(sockets=[listener])
