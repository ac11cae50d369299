"""Runtime entry point."""

import argparse
import logging
import threading

from silverware.lifecycle import LifecycleEvent

from hystrix_provider.config import Settings
from hystrix_provider.container import ProviderContainer


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run the HTTP server and Hystrix metrics stream providers",
    )
    parser.add_argument("--port", type=int, help="HTTP server port (overrides HTTP_SERVER_PORT)")
    parser.add_argument(
        "--enable-metrics",
        action="store_true",
        help="Publish the Hystrix metrics stream (overrides HYSTRIX_METRICS_ENABLED)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = create_parser().parse_args(argv)

    settings = Settings.load()
    if args.port is not None:
        settings.http_server_port = args.port
    if args.enable_metrics:
        settings.hystrix_metrics_enabled = "true"
    settings.validate_config()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    container = ProviderContainer()
    container.config.override(settings)

    lifecycle_coordinator = container.lifecycle_coordinator()
    lifecycle_coordinator.initialize()

    event = threading.Event()

    def signal_shutdown(lifecycle_event: LifecycleEvent) -> None:
        if lifecycle_event == LifecycleEvent.AFTER_SHUTDOWN:
            event.set()

    lifecycle_coordinator.register_lifecycle_notification(signal_shutdown)

    container.executor().start()
    lifecycle_coordinator.fire_startup()

    event.wait()


if __name__ == "__main__":
    main()
