"""Scale Rebel site API - contact form mailer and CRM admin panel."""

import os
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from scalerebel.auth.database import init_db
from scalerebel.auth.routes import router as otp_router
from scalerebel.contact.routes import router as contact_router
from scalerebel.crm.routes import router as crm_router
from scalerebel.security.edge_filter import EdgeFilterMiddleware

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:8888",
    "https://thescalerebel.com",
    "https://www.thescalerebel.com",
]


def get_allowed_origins() -> list:
    raw = os.environ.get("CORS_ALLOWED_ORIGINS", "")
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or DEFAULT_ALLOWED_ORIGINS


ALLOWED_ORIGINS = get_allowed_origins()

app = FastAPI(
    title="Scale Rebel Site API",
    description="Contact form mailer and CRM admin panel for the studio website",
    version="0.1.0"
)


# Initialize database on startup
@app.on_event("startup")
async def startup_event():
    try:
        init_db()
        logging.info("Database initialization completed on startup")
    except Exception as e:
        # Don't crash the app; routes create missing tables on first use
        logging.error(f"Database initialization error on startup: {str(e)}")


app.include_router(otp_router)
app.include_router(crm_router)
app.include_router(contact_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

# Added last so it runs first, ahead of CORS and routing
app.add_middleware(
    EdgeFilterMiddleware,
    enabled=os.environ.get("EDGE_FILTER_ENABLED", "true").lower() != "false"
)


def _cors_headers(request: Request) -> dict:
    """CORS headers for error responses raised past the CORS middleware."""
    origin = request.headers.get("origin")
    if origin in ALLOWED_ORIGINS:
        return {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Credentials": "true",
        }
    return {}


def _error_content(detail) -> dict:
    if isinstance(detail, dict):
        return detail
    return {"error": detail if isinstance(detail, str) else str(detail)}


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Render FastAPI HTTP exceptions as {"error": ...}."""
    headers = _cors_headers(request)
    if exc.headers:
        headers.update(exc.headers)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(exc.detail),
        headers=headers
    )


@app.exception_handler(StarletteHTTPException)
async def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render routing errors (404, 405) as {"error": ...}."""
    detail = "Method not allowed" if exc.status_code == 405 else exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(detail),
        headers=_cors_headers(request)
    )


def describe_validation_error(errors: list) -> str:
    """Turn pydantic's error list into one human readable message."""
    if not errors:
        return "Invalid request."
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Invalid JSON."
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query")]
    field = ".".join(loc)
    message = first.get("msg", "Invalid value")
    return f"{field}: {message}" if field else message


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Validation errors are user-correctable: 400 with a single message."""
    return JSONResponse(
        status_code=400,
        content={"error": describe_validation_error(exc.errors())},
        headers=_cors_headers(request)
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Log unexpected failures with detail; callers only see a generic message."""
    logging.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
        headers=_cors_headers(request)
    )


@app.get("/health")
async def health():
    return {"status": "healthy"}


@app.get("/robots.txt")
async def robots_txt():
    """Keeps crawlers out of the API and admin panel."""
    return Response(
        content="User-agent: *\nDisallow: /api/\nDisallow: /admin\n",
        media_type="text/plain"
    )


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "8000")))
