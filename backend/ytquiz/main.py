import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.errors import ErrorKind, QuizGenerationError, message_for, status_for
from .routes import quiz_routes, transcript_routes

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("ytquiz")

app = FastAPI(
    title="YtQuiz API",
    description="Backend API for YtQuiz - turns YouTube video transcripts into multiple-choice quizzes",
    version="1.0.0",
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT"
    }
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(quiz_routes.router, prefix="/api", tags=["quiz"])
app.include_router(transcript_routes.router, prefix="/api", tags=["transcript"])


def error_response(kind: ErrorKind) -> JSONResponse:
    return JSONResponse(status_code=status_for(kind), content={"error": message_for(kind)})


# ------------------------------------------------------------
# Exception handlers
# ------------------------------------------------------------
@app.exception_handler(QuizGenerationError)
async def quiz_error_handler(request: Request, exc: QuizGenerationError):
    logger.warning(f"{request.method} {request.url.path} failed: {exc.kind.value} ({exc.detail})")
    return error_response(exc.kind)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error: {exc.errors()}")
    return error_response(ErrorKind.MISSING_INPUT)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return error_response(ErrorKind.UNEXPECTED)


@app.get("/")
async def root():
    return {
        "message": "Welcome to YtQuiz API",
        "version": app.version,
        "docs": "/docs",
        "openapi": "/openapi.json"
    }


def run():
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run("ytquiz.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
