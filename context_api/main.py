"""Context API - Local API for building context exports from the vault.

Exposes the Context Fetcher over simple REST endpoints.
Run with: uvicorn context_api.main:app --port 8110
"""

from datetime import datetime

from fastapi import FastAPI

from config import CONTEXT_API_HOST, CONTEXT_API_PORT
from .context_routes import router as context_router

app = FastAPI(
    title="Context API",
    description="Local API for building LLM context exports from a markdown vault",
    version="1.0.0"
)

app.include_router(context_router)


# ============================================================
# Health Check
# ============================================================

@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "Context API",
        "timestamp": datetime.now().astimezone().isoformat()
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=CONTEXT_API_HOST, port=CONTEXT_API_PORT)
