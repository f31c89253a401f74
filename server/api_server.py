"""FastAPI application entry point for the search bridge."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.exceptions import AdapterError, ConfigurationError
from shared.clients.host.HostClientInterface import HostClientInterface
from shared.clients.search.SearchClientInterface import SearchClientInterface
from shared.clients.host.HostClientManager import HostClientManager
from shared.clients.search.SearchClientManager import SearchClientManager
from services.search_sync.EventHandler import EventHandler
from services.search_sync.SyncService import SyncService
from server.routers.WebhookRouter import router as webhook_router
from server.routers.AdminRouter import router as admin_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)
    app.state.host_client = None
    app.state.search_client = None
    app.state.sync_service = None

    try:
        host_client = HostClientManager(helper_config=app.state.helper_config).get_client()
        search_client = SearchClientManager(helper_config=app.state.helper_config).get_client()
    except ConfigurationError as e:
        # the host keeps working without search; events are acknowledged and ignored
        logging.warning("Indexing disabled: %s", e, color="yellow")
    else:
        logging.info("Booting all clients...")
        for client in [host_client, search_client]:
            await client.boot()
        logging.info("All clients booted successfully.")

        app.state.host_client = host_client
        app.state.search_client = search_client
        app.state.sync_service = SyncService(
            helper_config=app.state.helper_config,
            host_client=host_client,
            search_client=search_client,
        )
        await check_connections(host_client, search_client)

    app.state.event_handler = EventHandler(
        helper_config=app.state.helper_config,
        sync_service=app.state.sync_service,
    )

    # while the app is running...
    yield

    # when the app shuts down, close all client connections
    logging.info("Shutting down, closing all clients...")
    for client in [app.state.host_client, app.state.search_client]:
        if client is not None:
            await client.close()
    logging.info("All clients closed.")


app = FastAPI(
    title="search_bridge",
    description=(
        "Keeps a hosted search index in sync with the publications of a journal "
        "publishing platform. Host lifecycle events arrive via POST /webhook/event; "
        "rebuilds and manual pushes are triggered via POST /admin/rebuild and POST /admin/push."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(webhook_router)
app.include_router(admin_router)


async def check_connections(
    host_client: HostClientInterface,
    search_client: SearchClientInterface,
) -> None:
    """Check connectivity to both backends on startup.

    Failures are logged, never fatal: indexing is fire-and-forget for the host,
    and pushes report their own errors once the backend is back.
    """
    for client in [host_client, search_client]:
        try:
            result: httpx.Response = await client.do_healthcheck()
        except httpx.HTTPError as e:
            logging.warning("%s client '%s' is not reachable: %s", client.get_client_type(), client.get_engine_name(), e)
            continue
        if not result.is_success:
            logging.warning(
                "%s client '%s' is not reachable (status %d). Sync may fail.",
                client.get_client_type(),
                client.get_engine_name(),
                result.status_code,
            )

    try:
        if not await search_client.do_existence_check():
            logging.warning("Search index '%s' does not exist yet. It is created by the first push.", search_client.get_index_name(), color="yellow")
    except AdapterError as e:
        logging.warning("Could not list search indexes: %s", e)


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting search_bridge API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
