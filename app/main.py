import logging
import time
import uuid
from typing import Optional

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.dependencies import get_db
from app.api.endpoints import auth, books, loans, users
from app.core.config import Settings, settings as default_settings
from app.core.logging import configure_logging, get_logger, request_id_ctx
from app.db.session import Database


request_logger = get_logger("api.request")
error_logger = get_logger("api.errors")


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
    )


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="Library Management API",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.database = Database(settings.DATABASE_URL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers de la API
    app.include_router(auth.router)
    app.include_router(books.router)
    app.include_router(loans.router)
    app.include_router(users.router)

    @app.on_event("startup")
    def startup_event():
        app.state.database.connect()
        request_logger.info("database_connected", extra={"operation": "startup"})

    @app.on_event("shutdown")
    def shutdown_event():
        app.state.database.close()
        request_logger.info("database_closed", extra={"operation": "shutdown"})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        message = _validation_message(exc)
        error_logger.info(
            "request_invalid",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": 400,
                "errors": message,
            },
        )
        return _error_response(400, message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        # El detalle queda en el log, no en la respuesta
        response = _error_response(500, "Error del servidor")
        request_id = getattr(request.state, "request_id", None)
        if request_id:
            response.headers["X-Request-ID"] = request_id
        return response

    @app.middleware("http")
    async def add_request_id_and_log(request: Request, call_next):
        """
        Middleware que:
        - Asigna un request_id (si no viene en cabecera).
        - Mide el tiempo de respuesta.
        - Loguea la petición y marca WARNING si es lenta.
        """
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        start = time.perf_counter()

        request.state.request_id = request_id
        token = request_id_ctx.set(request_id)

        try:
            response: Response = await call_next(request)
        except Exception:
            process_time_ms = (time.perf_counter() - start) * 1000
            request_logger.error(
                "unhandled_exception",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": 500,
                    "duration_ms": round(process_time_ms, 2),
                    "client_host": request.client.host if request.client else None,
                },
                exc_info=True,
            )
            raise
        finally:
            request_id_ctx.reset(token)

        process_time_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        # Elegir nivel según si es lenta
        level = logging.INFO
        if process_time_ms > settings.SLOW_REQUEST_THRESHOLD_MS:
            level = logging.WARNING

        request_logger.log(
            level,
            "request_completed",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(process_time_ms, 2),
                "client_host": request.client.host if request.client else None,
            },
        )

        return response

    @app.get("/")
    def root():
        return {"message": "Library API running"}

    @app.get("/health/db")
    def health_db(db: Session = Depends(get_db)):
        db.execute(text("SELECT 1"))
        return {"status": "ok"}

    return app


app = create_app()
