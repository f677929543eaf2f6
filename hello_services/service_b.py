from datetime import datetime
from typing import Callable

from fastapi import FastAPI

from hello_services.runtime import (
    Settings,
    add_text_route,
    configure_logging,
    format_timestamp,
    install_request_logging,
    load_settings,
    resolve_hostname,
    run_service,
)

SERVICE_NAME = "Service B"
DEFAULT_GREETING_MODE = "detailed"


def create_app(
    settings: Settings | None = None,
    hostname_provider: Callable[[], str] = resolve_hostname,
    clock: Callable[[], datetime] = datetime.now,
) -> FastAPI:
    """Build the Service B application; also usable as `uvicorn --factory` target."""

    if settings is None:
        settings = load_settings()
    greeting_mode = settings.greeting_mode or DEFAULT_GREETING_MODE

    app = FastAPI(title=SERVICE_NAME)
    install_request_logging(app, SERVICE_NAME)

    def health() -> str:
        if greeting_mode == "detailed":
            return f"{SERVICE_NAME} is healthy"
        return "OK"

    def handle() -> str:
        if greeting_mode == "detailed":
            return f"Hello from {SERVICE_NAME} running on {hostname_provider()} at {format_timestamp(clock)}"
        return "Hello from B"

    add_text_route(app, "/health", health)
    add_text_route(app, "/", handle)
    return app


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    run_service(create_app(settings=settings), settings, SERVICE_NAME)


if __name__ == "__main__":
    main()
