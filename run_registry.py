#!/usr/bin/env python3
"""
Run script for the claim registry API.

Usage:
    python run_registry.py

Settings come from the environment or a .env file (REGISTRY_ prefix):
    REGISTRY_DB_PATH      SQLite database (default data/claims.db)
    REGISTRY_OWNER_ID     owner identity for a fresh database
    REGISTRY_HOST / REGISTRY_PORT / REGISTRY_DEBUG / REGISTRY_LOG_LEVEL
"""

import logging
import os
import sys

# Keep HTTP client/server libraries quiet unless something goes wrong
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("python_multipart").setLevel(logging.WARNING)

# Add src to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def main():
    """Run the registry server."""
    import uvicorn
    from src.utils.config import get_settings

    settings = get_settings()

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    print("=" * 60)
    print("Claim Registry")
    print("=" * 60)
    print(f"Server: {settings.public_url}")
    print(f"Database: {settings.db_path}")
    print(f"Initial owner: {settings.owner_id}")
    print("=" * 60)
    print()
    print("Endpoints:")
    print(f"  - Health: {settings.public_url}/health")
    print(f"  - Submit: POST {settings.public_url}/claims")
    print(f"  - Claim:  GET {settings.public_url}/claims/{{claim_id}}")
    print(f"  - Events: GET {settings.public_url}/events")
    print()
    print("Send your identity in the X-Caller-Id header.")
    print()

    uvicorn.run(
        "src.api.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
