"""
FlickPick Main Application

Entry point that serves the FastAPI backend with uvicorn.
"""

import os

import uvicorn
from dotenv import load_dotenv

from .api.backend import app as fastapi_app


def main() -> None:
    """Run the API server; host and port come from HOST and PORT."""
    load_dotenv()
    uvicorn.run(
        fastapi_app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5000")),
        log_level=os.getenv("LOG_LEVEL", "info").lower()
    )


if __name__ == "__main__":
    main()
