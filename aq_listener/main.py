# aq_listener/main.py
import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings
from .errors import SinkWriteError
from .influx import InfluxSink
from .listener import IngestionLoop
from .service import IngestService
from .transport import MulticastReceiver

logger = logging.getLogger(__name__)


def build_service(settings: Settings) -> IngestService:
    """Wire the multicast source and the Influx sink into a service."""
    sink = InfluxSink.from_settings(settings)
    source = MulticastReceiver(
        group=settings.multicast_addr,
        port=settings.port,
        bind_addr=settings.bind_addr,
        max_size=settings.recv_size,
    )
    return IngestService(IngestionLoop(source, sink, recv_timeout=settings.recv_timeout))


def create_app(settings: Optional[Settings] = None,
               service_factory: Callable[[Settings], IngestService] = build_service) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(
            level=settings.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        service = service_factory(settings)
        app.state.service = service
        if settings.autostart:
            service.start()
        try:
            yield
        finally:
            service.stop()
            close = getattr(service.loop.sink, "close", None)
            if callable(close):
                close()

    app = FastAPI(title="AQ Telemetry Listener", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------- Endpoints ----------
    @app.get("/api/v1/health")
    def health(request: Request):
        service: IngestService = request.app.state.service
        return {
            "status": "ok",
            "running": service.is_running,
            "state": service.loop.state.value,
            "last_error": service.last_error,
        }

    @app.get("/api/v1/stats")
    def stats(request: Request):
        return request.app.state.service.loop.stats.model_dump()

    @app.post("/api/v1/ingest")
    async def ingest(request: Request):
        """
        Relay one envelope over HTTP, for nodes that cannot reach the
        multicast group. Same pipeline and drop rules as the listener.
        """
        service: IngestService = request.app.state.service
        body = await request.body()
        try:
            measurement = await run_in_threadpool(service.loop.process, body)
        except SinkWriteError as e:
            raise HTTPException(status_code=502, detail=str(e))
        if measurement is None:
            return {"status": "dropped"}
        return {"status": "ok", "measurement": measurement.model_dump(mode="json")}

    return app


app = create_app()
