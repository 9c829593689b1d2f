from contextlib import asynccontextmanager
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .deps import get_secrets
from .routers.assistant import router as assistant_router
from .routers.classify import router as classify_router
from .secrets import Secrets, load_secrets, secrets_status


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.secrets = load_secrets()
    # Presence only; never log values.
    logger.info("configuration loaded: %s", secrets_status(app.state.secrets))
    yield


app = FastAPI(title="herd-lens API", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def bad_request_body(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Absent or mistyped input is a client error (400), same as a blank field.
    fields = [
        ".".join(str(p) for p in tuple(err.get("loc", ()))[1:])
        for err in exc.errors()
        if tuple(err.get("loc", ()))[:1] == ("body",)
    ]
    fields = [f for f in fields if f]
    if fields:
        detail = "Missing or invalid field in request body: " + ", ".join(sorted(set(fields)))
    else:
        detail = "Missing request body"
    logger.info("rejected request body path=%s fields=%s", request.url.path, fields)
    return JSONResponse(status_code=400, content={"detail": detail})


@app.get("/api/health")
def health(secrets: Secrets = Depends(get_secrets)):
    return {
        "ok": True,
        "service": "herd-lens-api",
        "version": __version__,
        **secrets_status(secrets),
    }


app.include_router(classify_router)
app.include_router(assistant_router)
