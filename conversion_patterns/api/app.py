"""FastAPI application."""

from fastapi import FastAPI

from conversion_patterns import __version__
from conversion_patterns.api.routes_analyses import router as analyses_router


app = FastAPI(title="Conversion Pattern Analysis", version=__version__)
app.include_router(analyses_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Conversion Pattern Analysis API", "version": __version__}
