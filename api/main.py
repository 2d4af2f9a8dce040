import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from analytics import router as analytics_router
from auth import router as auth_router
from contacts import router as contacts_router
from core import db, settings
from projects import router as projects_router
from skills import router as skills_router
from technologies import router as technologies_router

logging.basicConfig(
    level=settings.log_level(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("portfolio")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
}


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Initialize the DB pool once per process.
    await db.init_pool()
    if not await db.check_connection():
        logger.error("db_check_failed host=%s name=%s", settings.db_host(), settings.db_name())
    try:
        yield
    finally:
        await db.close_pool()


app = FastAPI(lifespan=lifespan)

# Only the portfolio frontend may call this API from the browser.
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


app.include_router(projects_router.router, tags=["projects"])
app.include_router(skills_router.router, tags=["skills"])
app.include_router(technologies_router.router, tags=["technologies"])
app.include_router(contacts_router.router, tags=["contacts"])
app.include_router(analytics_router.router, tags=["analytics"])
app.include_router(auth_router.router, tags=["auth"])


@app.get("/api/health")
async def health() -> dict:
    return {
        "status": "OK",
        "message": "Portfolio Backend is running",
        "environment": settings.app_env(),
        "database": "up" if await db.check_connection() else "down",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port())
