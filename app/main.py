from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from timing_asgi import TimingMiddleware, TimingClient  # type: ignore
from timing_asgi.integrations import StarletteScopeToName  # type: ignore

from app.core import config
from app.core.database.engine import init_db
from app.core.rate_limit import limiter
from app.features.users.routes import router as user_router
from app.features.organizations.routes import router as organization_router
from app.features.join_codes.routes import router as join_code_router
from app.features.employees.routes import router as employee_router
from app.features.shifts.routes import router as shift_router
from app.features.availability.routes import router as availability_router
from app.features.time_off.routes import router as time_off_router
from app.features.ai.provider import close_llm_providers
from app.features.ai.routes import router as ai_router
from app.utils import get_logger


log = get_logger(__name__)
log.info("Initializing server")
app = FastAPI(
    title="FirstShift API",
    description="Multi-organization shift scheduling with Appwrite authentication",
    version="0.1.0",
    docs_url="/docs" if config.ENABLE_DOCS else None,
    redoc_url="/redoc" if config.ENABLE_DOCS else None,
    openapi_url="/openapi.json" if config.ENABLE_DOCS else None
)
app.state.limiter = limiter


class LogTimings(TimingClient):
    def timing(self, metric_name, timing, tags):
        log.debug(dict(route=metric_name.removeprefix("main.app.features."), timing=timing, tags=tags))


app.add_middleware(TimingMiddleware, client=LogTimings(), metric_namer=StarletteScopeToName("main", app))

if config.ENABLE_DOCS:
    log.warning("Docs enabled")
if config.ALLOW_ORIGIN:
    log.warning("Setting allow origin to %s", config.ALLOW_ORIGIN)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.ALLOW_ORIGIN],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError):
    """Flatten validation errors to {field: message} with a 400."""
    errors = dict()
    for error in exc.errors():
        if "loc" not in error or "msg" not in error:
            continue
        key = error["loc"][-1] if error["loc"] else "root"
        if key == "__root__" or key == "body":
            key = "root"
        errors[key] = error["msg"]
    log.info("Request validation error %s", errors)
    return JSONResponse(status_code=400, content=jsonable_encoder(errors))


@app.exception_handler(RateLimitExceeded)
def rate_limit_exceeded_handler(_request: Request, _exc: RateLimitExceeded) -> Response:
    return JSONResponse({"error": "You are going too fast"}, status_code=429)


@app.on_event("startup")
async def startup():
    log.info("Initializing database...")
    await init_db()
    log.info("Database initialized successfully")


@app.on_event("shutdown")
async def shutdown():
    await close_llm_providers()


@app.get("/")
async def root():
    return {
        "message": "FirstShift API",
        "version": "0.1.0",
        "status": "online",
        "docs": "/docs" if config.ENABLE_DOCS else None,
        "authentication": "Protected endpoints require an Appwrite JWT as Bearer token",
    }


@app.get("/health")
async def health():
    return {"status": "healthy"}


app.include_router(user_router, prefix="/users", tags=["users"])
app.include_router(organization_router, prefix="/organizations", tags=["organizations"])
app.include_router(join_code_router, prefix="/join-codes", tags=["join-codes"])
app.include_router(employee_router, prefix="/employees", tags=["employees"])
app.include_router(shift_router, prefix="/shifts", tags=["shifts"])
app.include_router(availability_router, prefix="/availability", tags=["availability"])
app.include_router(time_off_router, prefix="/time-off", tags=["time-off"])
app.include_router(ai_router, prefix="/ai", tags=["ai"])
