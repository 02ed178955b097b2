from fastapi import FastAPI, HTTPException, Request
import uvicorn
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response, JSONResponse
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from lms.config import create_db, settings
from lms.errors import Forbidden
from lms.schemas.common_schemas import ErrorResponse
from lms.routes.course_routes import course_routes
from lms.routes.progress_routes import progress_routes
from lms.routes.quiz_routes import quiz_routes
from lms.routes.user_routes import user_routes
from lms.utils.logger import configure_logging, set_request_id, clear_request_id

app = FastAPI(title="LMS Assessment API")
logger = configure_logging()
create_db()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(message=message).model_dump())


@app.middleware("http")
async def request_logger(request: Request, call_next):
    rid = set_request_id(request.headers.get("x-request-id"))
    try:
        logger.info("request start method=%s path=%s client=%s", request.method, request.url.path, request.client)
        response: Response = await call_next(request)
        logger.info("request end status=%s method=%s path=%s", response.status_code, request.method, request.url.path)
        response.headers["x-request-id"] = rid
        return response
    except Exception:
        logger.exception("request error method=%s path=%s", request.method, request.url.path)
        raise
    finally:
        clear_request_id()


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    # Forbidden reasons stay in the log; the caller gets the uniform message.
    reason = exc.reason if isinstance(exc, Forbidden) else None
    if exc.status_code >= 500:
        logger.error("http error status=%s method=%s path=%s detail=%s", exc.status_code, request.method, request.url.path, exc.detail)
    else:
        logger.warning(
            "http error status=%s method=%s path=%s detail=%s reason=%s",
            exc.status_code, request.method, request.url.path, exc.detail, reason.value if reason else "-",
        )
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        messages.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    logger.warning("validation error method=%s path=%s errors=%s", request.method, request.url.path, messages)
    return _error(422, "; ".join(messages))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Never leak internal exception details to clients.
    logger.exception("unhandled error method=%s path=%s", request.method, request.url.path)
    return _error(HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")


@app.get("/")
def read_root():
    return {"success": True, "message": "LMS API is running"}


app.include_router(progress_routes, prefix="/api")
app.include_router(quiz_routes, prefix="/api")
app.include_router(course_routes, prefix="/api")
app.include_router(user_routes, prefix="/api")

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
