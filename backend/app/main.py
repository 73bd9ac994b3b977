from contextlib import asynccontextmanager
import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


# ---- load .env files (backend/ then repo root) ---------------------------
CURRENT_FILE = Path(__file__).resolve()
BACKEND_DIR = CURRENT_FILE.parents[1]
REPO_ROOT = CURRENT_FILE.parents[2]

# Collect candidate .env files in priority order
_env_candidates = [
    BACKEND_DIR / ".env.local",
    BACKEND_DIR / ".env",
    REPO_ROOT / ".env.local",
    REPO_ROOT / ".env",
]
_loaded = []
for env_path in _env_candidates:
    if env_path.exists():
        # Do not override already-set env vars; load in priority order
        load_dotenv(env_path, override=False)
        _loaded.append(str(env_path))

# Config and routers read the environment at import: import after .env load
from app.core import config  # noqa: E402
from app.core.database import init_db  # noqa: E402
from app.core.errors import NotFoundError, ValidationFailed  # noqa: E402
from app.routers import districts, finance, movements, production, products, reports, stores, upload  # noqa: E402

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("app.main")

if _loaded:
    logger.info("Loaded env files: %s", ", ".join(_loaded))
else:
    logger.info("No .env file found next to backend/ or repo root.")


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_db()
    logger.info("database ready (%s)", config.DATABASE_URL.split("@")[-1])
    yield


app = FastAPI(title="Retail Operations API", lifespan=lifespan)


# ---- CORS (dev-friendly) ----------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.FRONTEND_ORIGINS,
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1|0\.0\.0\.0)(:\d+)?$",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=86400,
)


# ---- errors as {"error": message} ------------------------------------------
def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    msg = str(first.get("msg", "Invalid value")).removeprefix("Value error, ")
    if first.get("type") == "value_error":
        return msg
    loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path")]
    return f"{'.'.join(loc)}: {msg}" if loc else msg


@app.exception_handler(StarletteHTTPException)
async def http_error(_: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def request_validation_error(_: Request, exc: RequestValidationError):
    return _error(400, _validation_message(exc))


@app.exception_handler(NotFoundError)
async def not_found_error(_: Request, exc: NotFoundError):
    return _error(404, str(exc))


@app.exception_handler(ValidationFailed)
async def validation_failed(_: Request, exc: ValidationFailed):
    return _error(400, str(exc))


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return _error(500, "Internal server error")


# ---- register routers ------------------------------------------------------
app.include_router(districts.router)
app.include_router(stores.router)
app.include_router(products.router)
app.include_router(movements.router)
app.include_router(finance.payments_router)
app.include_router(finance.plans_router)
app.include_router(production.router)
app.include_router(reports.router)
app.include_router(upload.router)


# ---- simple health check ---------------------------------------------------
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}
