import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from budtender.api.routes import router as api_router
from budtender.config import public_settings, setup_logging
from budtender.errors import BudtenderError

logger = setup_logging()
app = FastAPI(title="GreenLeaf AI Budtender")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger.info("Application starting")
logger.info("Loaded settings: %s", public_settings())


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.exception_handler(BudtenderError)
async def budtender_error_handler(request: Request, exc: BudtenderError):
    level = logging.WARNING if exc.status_code < 500 else logging.ERROR
    logger.log(level, "Request failed", extra={"path": request.url.path, "error": exc.message, "status": exc.status_code})
    content = {"error": exc.message}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error", extra={"path": request.url.path})
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    from budtender.config import settings

    uvicorn.run(app, host=settings.app_host, port=settings.app_port)
