from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import balances, flows, health, session, templates
from .config import settings
from .logging_config import setup_logging
from .providers.nexus import get_nexus_provider

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await get_nexus_provider().close()


# Create FastAPI app
app = FastAPI(
    title="IntentCompass API",
    description="Simulate and execute visual cross-chain DeFi flows",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(session.router)
app.include_router(flows.router)
app.include_router(templates.router)
app.include_router(balances.router)


@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "name": "IntentCompass API",
        "version": "0.1.0",
        "description": "Simulate and execute visual cross-chain DeFi flows",
        "docs": "/docs",
        "health": "/healthz",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "intentcompass.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower(),
    )
