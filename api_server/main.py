"""FastAPI application entry point"""

import os
from dotenv import load_dotenv
from fastapi import FastAPI

# Load environment variables
load_dotenv()

from api_server.middleware import setup_cors, setup_rate_limit, setup_logging, LoggingMiddleware
from api_server.routes import health_router, battle_router

# Setup logging
logger = setup_logging()

# Create FastAPI app
app = FastAPI(
    title="AI Battle Debate API",
    description="API for a logic-scored AI debate battle",
    version="1.0.0",
)

# Setup middleware
setup_cors(app)
setup_rate_limit(app)
app.add_middleware(LoggingMiddleware)

# Include routers
app.include_router(health_router)
app.include_router(battle_router)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "AI Battle Debate API",
        "docs": "/docs",
        "health": "/health",
        "state": "/battle/state",
    }


if __name__ == "__main__":
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))

    uvicorn.run(
        "api_server.main:app",
        host=host,
        port=port,
        reload=True,
    )
