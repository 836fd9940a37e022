import logging

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler
import sentry_sdk

from app.api.v1.health import router as health_router
from app.api.v1.generate import router as generate_router
from app.api.v1.uploads import router as uploads_router
from app.api.v1.resumes import router as resumes_router
from app.api.v1.history import router as history_router
from app.api.v1.auth import router as auth_router
from app.api.v1.analytics import router as analytics_router
from app.core.cors import install_cors
from app.core.rate_limit import limiter
from app.core.config import settings
from dotenv import load_dotenv
from app.core.lifespan import lifespan

load_dotenv()
logging.basicConfig(level=settings.log_level, format="%(message)s")
if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn)

app = FastAPI(title="Resume Tailor API", version="0.1.0", lifespan=lifespan)
app.state.pipelines = {}

install_cors(app)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.include_router(health_router, prefix="/v1", tags=["Health"])
app.include_router(generate_router, prefix="/v1", tags=["Generate"])
app.include_router(uploads_router, prefix="/v1", tags=["Uploads"])
app.include_router(resumes_router, prefix="/v1", tags=["Resumes"])
app.include_router(history_router, prefix="/v1", tags=["History"])
app.include_router(auth_router, prefix="/v1", tags=["Auth"])
app.include_router(analytics_router, prefix="/v1", tags=["Analytics"])
