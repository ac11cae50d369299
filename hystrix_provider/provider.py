"""Publishes the Hystrix metrics stream of executed circuit-breaker commands."""

import logging

from silverware.context import Context
from silverware.exceptions import ProviderInterruptedException
from silverware.http.servlet import ServletDescriptor
from silverware.providers import (
    HttpServerSilverService,
    HystrixSilverService,
    MicroserviceProvider,
)
from silverware.utils import log_shutdown, parse_boolean, wait_for_http

from hystrix_provider.exceptions import MetricsStreamStartupError
from hystrix_provider.stream import HystrixMetricsStreamServlet

logger = logging.getLogger(__name__)

SERVLET_NAME = "HystrixMetricsStreamServlet"
DEFAULT_METRICS_PATH = "hystrix.stream"
POLL_INTERVAL_SECONDS = 1.0


class HystrixMicroserviceProvider(MicroserviceProvider, HystrixSilverService):
    """Waits for the HTTP server provider, then deploys the metrics stream on it.

    Disabled unless ``hystrix.metrics.enabled`` is "true". The stream is
    deployed at most once per provider; if it never answers the probe the
    provider gives up and its thread ends.
    """

    def __init__(self, poll_interval: float = POLL_INTERVAL_SECONDS):
        self.poll_interval = poll_interval
        self._context: Context | None = None

    def initialize(self, context: Context) -> None:
        self._context = context

        context.properties.put_if_absent(self.HYSTRIX_METRICS_ENABLED, "false")
        context.properties.put_if_absent(self.HYSTRIX_METRICS_PATH, DEFAULT_METRICS_PATH)

    def get_context(self) -> Context:
        if self._context is None:
            raise RuntimeError("HystrixMicroserviceProvider used before initialize()")
        return self._context

    def run(self) -> None:
        logger.info("Hello from Hystrix microservice provider!")

        context = self.get_context()
        if not self._is_metrics_enabled():
            logger.debug("Hystrix metrics stream disabled.")
            return

        deployed = False
        try:
            logger.debug("Waiting for the HTTP server microservice provider.")

            http: HttpServerSilverService | None = None
            while not context.is_interrupted():
                if http is None:
                    http = context.get_provider(HttpServerSilverService)

                    if http is not None:
                        logger.debug(f"Discovered HTTP Silverservice: {type(http).__name__}")
                        url = self._deploy_stream(http)
                        deployed = True
                        self._await_stream(url)

                context.sleep(self.poll_interval)
        except ProviderInterruptedException as e:
            log_shutdown(logger, e)
            if deployed:
                HystrixMetricsStreamServlet.shutdown()
        except MetricsStreamStartupError as e:
            logger.error(f"Hystrix microservice provider failed: {e.message}", extra={"url": e.url})
        except Exception:
            logger.error("Hystrix microservice provider failed", exc_info=True)

    def _deploy_stream(self, http: HttpServerSilverService) -> str:
        """Deploy the stream servlet; returns the URL it should answer on."""
        context_path = str(self.get_context().properties.get(self.HYSTRIX_METRICS_PATH))
        url = self._metrics_stream_url(context_path)
        logger.info(f"Deploying Hystrix metrics stream at {url}")

        HystrixMetricsStreamServlet.reset()
        http.deploy_servlet(context_path, SERVLET_NAME, [self._create_servlet_descriptor()])
        return url

    def _await_stream(self, url: str) -> None:
        context = self.get_context()
        logger.debug(f"Waiting for Hystrix metrics stream to appear at {url}")

        if context.is_interrupted():
            raise ProviderInterruptedException("Interrupted before probing the metrics stream")
        if not wait_for_http(url, 200, sleep=context.sleep):
            if context.is_interrupted():
                raise ProviderInterruptedException("Interrupted while probing the metrics stream")
            raise MetricsStreamStartupError(url)

        logger.debug(f"Hystrix metrics stream is up at {url}")

    def _create_servlet_descriptor(self) -> ServletDescriptor:
        return ServletDescriptor(SERVLET_NAME, HystrixMetricsStreamServlet, "/", {})

    def _metrics_stream_url(self, context_path: str) -> str:
        properties = self.get_context().properties
        server = properties.get(HttpServerSilverService.HTTP_SERVER_ADDRESS)
        port = properties.get(HttpServerSilverService.HTTP_SERVER_PORT)
        return f"http://{server}:{port}/{context_path}"

    def _is_metrics_enabled(self) -> bool:
        return parse_boolean(self.get_context().properties.get(self.HYSTRIX_METRICS_ENABLED))
