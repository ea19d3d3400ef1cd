from dotenv import load_dotenv

# Load env vars before any other imports to ensure they are available
load_dotenv()

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from authenticity.config import get_settings
from authenticity.routes import api
from authenticity.models.schemas import ErrorResponse
from authenticity.services.errors import CheckerError, ContentBlockedError

settings = get_settings()

# Configure logging
logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger("uvicorn")

app = FastAPI(
    title="Content Authenticity Checker",
    description="AI-generation detection with sentence highlighting, paraphrasing and plagiarism checks.",
    version="1.0.0"
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    client = request.client.host if request.client else "unknown"
    logger.info(f"Incoming request: {request.method} {request.url.path} from {client}")
    response = await call_next(request)
    return response


@app.exception_handler(CheckerError)
async def checker_error_handler(request: Request, exc: CheckerError):
    logger.warning(f"{request.url.path} failed ({exc.status_code}): {exc.message}")
    block_reason = exc.block_reason if isinstance(exc, ContentBlockedError) else None
    body = ErrorResponse(error=exc.message, block_reason=block_reason or None)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(by_alias=True, exclude_none=True))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}")
    body = ErrorResponse(error="Internal Server Error")
    return JSONResponse(status_code=500, content=body.model_dump(by_alias=True, exclude_none=True))


# Include API Routes
app.include_router(api.router)


@app.get("/")
async def root():
    return {"message": "Welcome to the Content Authenticity Checker API"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("authenticity.main:app", host="127.0.0.1", port=8000)
