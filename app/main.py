from __future__ import annotations

from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Path, Query
from loguru import logger

from . import schemas
from .core.config import get_settings, settings
from .domain import FeeReportError, UnknownChainError
from .services.fee_service import FeeService

app = FastAPI(title="Pool Fees API", version="0.1.0", debug=settings.debug)


@app.get("/healthz", tags=["system"])
def healthcheck() -> dict[str, str]:
    """Basic readiness probe consumed by infrastructure monitors."""

    return {"status": "ok"}


def _fee_service() -> FeeService:
    """Provide the fee service wired with the active settings."""

    return FeeService(get_settings())


@app.get("/chains", response_model=schemas.ChainList, tags=["chains"])
def list_chains(service: FeeService = Depends(_fee_service)):
    """List configured chains with their subgraph endpoint and inception timestamp."""

    items = service.list_chains()
    return schemas.ChainList(total=len(items), items=items)


@app.get("/chains/{chain}/fees", response_model=schemas.FeeReportOut, tags=["fees"])
def get_fee_report(
    chain: Annotated[str, Path(description="Configured chain name", example="polygon")],
    timestamp: Annotated[
        int | None,
        Query(ge=0, description="Report timestamp in unix seconds (defaults to now)"),
    ] = None,
    service: FeeService = Depends(_fee_service),
):
    """Compute daily and cumulative pool profit for a chain."""

    try:
        report = service.report(chain, timestamp)
    except UnknownChainError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except FeeReportError as exc:
        logger.exception("Fee report failed for chain {} at {}", chain, timestamp)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return schemas.FeeReportOut.model_validate(report.to_dict())
