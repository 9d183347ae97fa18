"""Process entry point: gRPC server plus the HTTP side-channel."""

import logging
import signal
import threading
from concurrent import futures

import grpc
import uvicorn
from grpc_health.v1 import health, health_pb2, health_pb2_grpc

from src.api.codec import SERVICE_NAME, add_user_service_to_server
from src.api.dependencies import ServiceScope, user_service_scope
from src.api.interceptors import LoggingInterceptor
from src.api.user_handler import UserServicer
from src.config import Settings, get_settings
from src.database import init_db
from src.logging_config import configure_logging
from src.main import app

logger = logging.getLogger(__name__)


def create_grpc_server(
    max_workers: int = 10,
    service_scope: ServiceScope = user_service_scope,
) -> tuple[grpc.Server, health.HealthServicer]:
    """Build a gRPC server with the user and health services registered (not started)."""
    server = grpc.server(
        futures.ThreadPoolExecutor(max_workers=max_workers),
        interceptors=[LoggingInterceptor()],
    )
    add_user_service_to_server(UserServicer(service_scope), server)

    health_servicer = health.HealthServicer()
    health_pb2_grpc.add_HealthServicer_to_server(health_servicer, server)
    for name in ("", SERVICE_NAME):
        health_servicer.set(name, health_pb2.HealthCheckResponse.SERVING)

    return server, health_servicer


def serve(settings: Settings | None = None) -> None:
    """Run both servers until SIGINT or SIGTERM, then drain."""
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.log_format)

    logger.info(
        f"Starting User Service version={settings.version} "
        f"build_time={settings.build_time} git_commit={settings.git_commit}"
    )

    init_db()

    grpc_server, health_servicer = create_grpc_server(settings.grpc_max_workers)
    grpc_address = f"{settings.host}:{settings.grpc_port}"
    grpc_server.add_insecure_port(grpc_address)
    grpc_server.start()
    logger.info(f"gRPC server listening on {grpc_address}")

    http_server = uvicorn.Server(
        uvicorn.Config(app, host=settings.host, port=settings.http_port, log_config=None)
    )
    http_thread = threading.Thread(target=http_server.run, name="http-server", daemon=True)
    http_thread.start()
    logger.info(f"HTTP server listening on {settings.host}:{settings.http_port}")

    stop = threading.Event()

    def _handle_signal(signum, frame):
        logger.info(f"Received shutdown signal {signal.Signals(signum).name}")
        stop.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    # Wake up periodically so a dead HTTP thread also brings the process down.
    failed = False
    while not stop.wait(timeout=1.0):
        if not http_thread.is_alive():
            logger.error("HTTP server stopped unexpectedly")
            failed = True
            break

    health_servicer.enter_graceful_shutdown()
    http_server.should_exit = True
    grpc_server.stop(settings.shutdown_grace_seconds).wait()
    http_thread.join(timeout=settings.shutdown_grace_seconds)
    if failed:
        raise SystemExit(1)
    logger.info("Server stopped gracefully")


def main() -> None:
    serve()


if __name__ == "__main__":
    main()
