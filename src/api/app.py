"""
FastAPI application for the claim registry.

Provides:
- Claim submission, lookup, ownership check and text export
- Owner-only status updates and owner role management
- Recent notification feed and health checks

Callers identify themselves with the X-Caller-Id header.
"""

import logging
from collections import deque
from contextlib import asynccontextmanager
from typing import Optional, Union

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field, StrictInt, StrictStr

from ..registry import ClaimRegistry, RegistryError
from ..storage import get_claim_store
from ..utils.config import Settings, get_settings

logger = logging.getLogger(__name__)

CALLER_HEADER = "X-Caller-Id"


# =============================================================================
# Request Bodies
# =============================================================================


class SubmitClaimRequest(BaseModel):
    customer_id: str = Field(min_length=1, description="Raw customer identifier")
    amount: int = Field(description="Claimed amount (positive integer)")


class UpdateStatusRequest(BaseModel):
    status: Union[StrictInt, StrictStr] = Field(description="Submitted, Approved, Rejected or their codes 0-2")


class CustomerRequest(BaseModel):
    customer_id: str = Field(min_length=1, description="Raw customer identifier")


class TransferOwnershipRequest(BaseModel):
    new_owner: str = Field(description="Identity that receives the owner role")


# =============================================================================
# Application Factory
# =============================================================================


def create_app(
    registry: Optional[ClaimRegistry] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the API around a registry.

    Args:
        registry: Registry to serve (default: SQLite store at settings.db_path)
        settings: Settings to use (default: get_settings())
    """
    settings = settings or get_settings()
    if registry is None:
        registry = ClaimRegistry(get_claim_store(settings.db_path), deployer=settings.owner_id)

    recent_events: deque = deque(maxlen=settings.event_buffer_size)
    registry.subscribe(lambda event: recent_events.append(event.to_dict()))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("Starting claim registry server...")
        logger.info(f"Owner: {registry.owner}")
        logger.info(f"Next claim id: {registry.next_claim_id}")
        yield
        logger.info("Shutting down claim registry server...")

    app = FastAPI(
        title="Claim Registry",
        description="Authenticated record store for insurance claims",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.registry = registry
    app.state.recent_events = recent_events

    @app.exception_handler(RegistryError)
    async def registry_error_handler(request: Request, exc: RegistryError):
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

    def get_registry() -> ClaimRegistry:
        return app.state.registry

    # =========================================================================
    # Health Check Endpoints
    # =========================================================================

    @app.get("/")
    async def root():
        """Root endpoint - basic health check."""
        return {
            "service": "Claim Registry",
            "status": "running",
        }

    @app.get("/health")
    async def health_check(reg: ClaimRegistry = Depends(get_registry)):
        """Detailed health check endpoint."""
        return {
            "status": "healthy",
            "owner": reg.owner,
            "next_claim_id": reg.next_claim_id,
        }

    # =========================================================================
    # Claim Endpoints
    # =========================================================================

    @app.post("/claims", status_code=201)
    def submit_claim(
        body: SubmitClaimRequest,
        caller: str = Header(..., alias=CALLER_HEADER),
        reg: ClaimRegistry = Depends(get_registry),
    ):
        """File a new claim. Any caller."""
        claim_id = reg.submit_claim(body.customer_id, body.amount, caller=caller)
        return {"claim_id": claim_id}

    @app.get("/claims/{claim_id}")
    def get_claim(claim_id: int, reg: ClaimRegistry = Depends(get_registry)):
        """Get hash, amount, date and status of a claim."""
        customer_id_hash, amount, claim_date, status = reg.get_claim(claim_id)
        return {
            "claim_id": claim_id,
            "customer_id_hash": customer_id_hash,
            "amount": str(amount),
            "claim_date": claim_date,
            "status": status.label,
        }

    @app.patch("/claims/{claim_id}/status")
    def update_claim_status(
        claim_id: int,
        body: UpdateStatusRequest,
        caller: str = Header(..., alias=CALLER_HEADER),
        reg: ClaimRegistry = Depends(get_registry),
    ):
        """Change a claim's status. Owner only."""
        reg.update_claim_status(claim_id, body.status, caller=caller)
        return {"claim_id": claim_id, "status": reg.get_claim(claim_id)[3].label}

    @app.post("/claims/{claim_id}/verify")
    def verify_claim_ownership(
        claim_id: int,
        body: CustomerRequest,
        reg: ClaimRegistry = Depends(get_registry),
    ):
        """Check whether a customer identifier matches the claim."""
        return {"claim_id": claim_id, "verified": reg.verify_claim_ownership(claim_id, body.customer_id)}

    @app.get("/claims/{claim_id}/text")
    def serialize_claim(claim_id: int, reg: ClaimRegistry = Depends(get_registry)):
        """Claim as its canonical JSON text."""
        return Response(content=reg.serialize_claim(claim_id), media_type="application/json")

    @app.post("/customers/claims")
    def list_customer_claims(body: CustomerRequest, reg: ClaimRegistry = Depends(get_registry)):
        """All claims of one customer as a JSON array text."""
        return Response(
            content=reg.list_customer_claims_as_text(body.customer_id),
            media_type="application/json",
        )

    # =========================================================================
    # Owner Endpoints
    # =========================================================================

    @app.get("/owner")
    def get_owner(reg: ClaimRegistry = Depends(get_registry)):
        """Current owner (null once renounced)."""
        return {"owner": reg.owner}

    @app.post("/owner/transfer")
    def transfer_ownership(
        body: TransferOwnershipRequest,
        caller: str = Header(..., alias=CALLER_HEADER),
        reg: ClaimRegistry = Depends(get_registry),
    ):
        """Hand the owner role to another identity. Owner only."""
        reg.transfer_ownership(body.new_owner, caller=caller)
        return {"owner": reg.owner}

    @app.post("/owner/renounce")
    def renounce_ownership(
        caller: str = Header(..., alias=CALLER_HEADER),
        reg: ClaimRegistry = Depends(get_registry),
    ):
        """Drop the owner role permanently. Owner only."""
        reg.renounce_ownership(caller=caller)
        return {"owner": reg.owner}

    # =========================================================================
    # Notifications
    # =========================================================================

    @app.get("/events")
    async def list_events(limit: int = 100):
        """Most recent notifications, oldest first."""
        events = list(app.state.recent_events)
        return {"events": events[-limit:] if limit > 0 else []}

    return app


# =============================================================================
# Main Entry Point
# =============================================================================


def main():
    """Run the FastAPI server."""
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

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
