"""REST API for the trade ledger."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..infrastructure.config import ConfigLoader, EngineConfig
from ..infrastructure.factories import FeeServiceFactory, PositionServiceFactory
from .endpoints import account as account_endpoints
from .endpoints import calculator as calculator_endpoints
from .endpoints import ledger as ledger_endpoints
from .endpoints import positions as positions_endpoints

logger = logging.getLogger(__name__)


async def startup(app: FastAPI):
    """Initialize the services on startup.

    This function handles all startup logic including:
    - Loading configuration
    - Creating the fee service from the configured fee table
    - Creating the position service and submission validator

    All service instances are stored in app.state to enable FastAPI
    dependency injection throughout the request/response cycle.

    Notes
    -----
    A missing configuration file is not fatal: the engine defaults and
    the built-in fee table are used and a warning is logged. A malformed
    file still fails startup.

    The position service holds all state in memory. A restart starts
    with no positions and an empty ledger.

    TradingContext
    --------------
    The fee service prices every logged trade, the validator rejects
    impossible submissions and the position service owns positions and
    the ledger. All three read the same engine flags so they agree on
    which markets are leveraged.
    """
    config_loader = ConfigLoader()

    try:
        engine_config = config_loader.get_engine_config()
        fee_service = FeeServiceFactory.create_from_config(config_loader)
    except FileNotFoundError as e:
        logger.warning(f"{e}; using built-in defaults")
        engine_config = EngineConfig()
        fee_service = FeeServiceFactory.create(engine_config)

    app.state.engine_config = engine_config
    app.state.fee_service = fee_service
    app.state.position_service = PositionServiceFactory.create(engine_config)
    app.state.validator = PositionServiceFactory.create_validator(engine_config)

    logger.info(
        f"API started (leveraged markets: {', '.join(engine_config.leveraged_markets)})"
    )


async def shutdown(app: FastAPI):
    """Log shutdown. In-memory positions and ledger are discarded."""
    logger.info(
        f"API stopped with {len(app.state.position_service.list_positions())} "
        f"active positions and {len(app.state.position_service.get_ledger())} "
        "ledger entries"
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage the application lifecycle.

    This context manager handles startup and shutdown events for the FastAPI
    application, replacing the deprecated @app.on_event decorators.
    """
    await startup(app)
    yield
    await shutdown(app)


# Initialize FastAPI app with lifespan management
app = FastAPI(
    title="Trade Ledger API",
    description="Position accounting for simulated leveraged trading",
    version=__version__,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "Trade Ledger API",
        "version": __version__,
    }


# Include routers
app.include_router(calculator_endpoints.router)
app.include_router(positions_endpoints.router)
app.include_router(ledger_endpoints.router)
app.include_router(account_endpoints.router)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host="127.0.0.1", port=8000)
