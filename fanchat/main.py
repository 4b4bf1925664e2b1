"""
FanChat Backend API
Accounts, support chat, operator inbox and persona responder
"""

import logging
import os
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fanchat.api.routes import account, admin, auth, chat, health, persona
from fanchat.core.config import settings
from fanchat.core.database import engine, SessionLocal
from fanchat.models import Base
from fanchat.middleware.error_handling import ErrorHandlingMiddleware, register_exception_handlers
from fanchat.middleware.logging import StructuredLoggingMiddleware
from fanchat.middleware.rate_limiting import RateLimitingMiddleware
from fanchat.services.chat_feed import ChatFeed

app = FastAPI(
    title="FanChat API",
    description="Accounts, support chat, operator inbox and persona responder",
    version="1.0.0"
)

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Live subscription hub shared by every request of this process
app.state.chat_feed = ChatFeed(SessionLocal)


@app.on_event("startup")
def startup_event():
    """Create database tables and check configuration on startup"""
    try:
        logging.info("Starting database initialization...")

        api_key = settings.openai_api_key or os.getenv("OPENAI_API_KEY")
        if not api_key or api_key.strip() == "":
            logging.warning(
                "Language model API key is not configured. "
                "Please configure OPENAI_API_KEY environment variable or Settings.openai_api_key. "
                "Persona replies will fail until a key is provided."
            )
        else:
            logging.info(f"Persona configured: flavor={settings.persona_flavor}, model={settings.persona_model}")

        Base.metadata.create_all(bind=engine)
        logging.info("Database tables created successfully")

        from fanchat.services.rate_limiter import rate_limiter
        rate_limiter.force_reset()
    except Exception as e:
        logging.error(f"Database initialization failed: {str(e)}")
        raise RuntimeError(f"Failed to initialize database: {str(e)}")


register_exception_handlers(app)

# Add middleware (order matters - last added is first executed)
app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(StructuredLoggingMiddleware)

if settings.rate_limit_enabled:
    app.add_middleware(RateLimitingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["authentication"])
app.include_router(account.router, prefix="/api/account", tags=["account"])
app.include_router(chat.router, prefix="/api", tags=["chat"])
app.include_router(persona.router, prefix="/api", tags=["persona"])
app.include_router(admin.router, prefix="/api/admin", tags=["operator"])
app.include_router(health.router, tags=["health"])

# Profile pictures
os.makedirs(settings.storage_path, exist_ok=True)
app.mount(settings.media_url_prefix, StaticFiles(directory=settings.storage_path), name="media")


@app.get("/health")
def health_check():
    """Simple health check endpoint"""
    return {"status": "healthy", "service": "fanchat-api"}
