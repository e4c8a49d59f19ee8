# main.py
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import CORS_ORIGINS
from core.database import init_db
from core.exceptions import AppError
from core.logging_config import bind_request_context, configure_logging, get_logger
from api import admin, auth, doctor, medical_records, patients

logger = get_logger(__name__)


def create_app(create_tables: bool = True) -> FastAPI:
    configure_logging()
    app = FastAPI(title="Breast Cancer Screening Backend")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        bind_request_context(request_id, request.method, request.url.path)
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        logger.warning("request_failed", error_type=type(exc).__name__, detail=exc.message,
                       status_code=exc.status_code)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
    app.include_router(doctor.router, prefix="/api/doctor", tags=["doctor"])
    app.include_router(patients.router, prefix="/api/patients", tags=["patients"])
    app.include_router(medical_records.router, prefix="/api/records", tags=["medical-records"])

    if create_tables:
        @app.on_event("startup")
        def startup_event():
            init_db()

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
