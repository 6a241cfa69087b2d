import uvicorn

from assistant.core.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "assistant.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",  # Only reload in development
    )
