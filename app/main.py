from fastapi import FastAPI

from app.core.config import settings
from app.core.logging import configure_logging
from app.core.rate_limit import setup_rate_limit
from app.routers import admin, businesses, categories, me, reviews, search, subcategories

configure_logging()

app = FastAPI(
    title=settings.project_name,
    version="1.0.0",
)

setup_rate_limit(app)

# Include routers
app.include_router(businesses.router, prefix=settings.api_v1_prefix)
app.include_router(reviews.router, prefix=settings.api_v1_prefix)
app.include_router(categories.router, prefix=settings.api_v1_prefix)
app.include_router(subcategories.router, prefix=settings.api_v1_prefix)
app.include_router(search.router, prefix=settings.api_v1_prefix)
app.include_router(admin.router, prefix=settings.api_v1_prefix)
app.include_router(me.router, prefix=settings.api_v1_prefix)


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "message": "Welcome to the CityLocal Directory API",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
