import logging

import uvicorn
from impact_flow.config import settings

if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    # Start the API server
    print(f"Starting Impact Flow API on {settings.API_HOST}:{settings.API_PORT}...")
    uvicorn.run(
        "impact_flow.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.API_RELOAD,
        log_level=settings.LOG_LEVEL.lower()
    )
