"""gRPC server interceptors and the RPC counters they feed."""

import logging
import threading
import time
from collections import defaultdict

import grpc

logger = logging.getLogger(__name__)


class RpcMetrics:
    """Per-method, per-status call counts and total latency."""

    def __init__(self):
        self._lock = threading.Lock()
        self._calls: dict[tuple[str, str], int] = defaultdict(int)
        self._seconds: dict[str, float] = defaultdict(float)

    def observe(self, method: str, code: grpc.StatusCode, seconds: float) -> None:
        with self._lock:
            self._calls[(method, code.name)] += 1
            self._seconds[method] += seconds

    def reset(self) -> None:
        with self._lock:
            self._calls.clear()
            self._seconds.clear()

    def render(self) -> str:
        """Render counters in the Prometheus text exposition format."""
        with self._lock:
            calls = sorted(self._calls.items())
            seconds = sorted(self._seconds.items())

        lines = [
            "# HELP grpc_server_handled_total Total number of RPCs completed on the server.",
            "# TYPE grpc_server_handled_total counter",
        ]
        for (method, code), count in calls:
            lines.append(f'grpc_server_handled_total{{grpc_method="{method}",grpc_code="{code}"}} {count}')
        lines += [
            "# HELP grpc_server_handling_seconds_sum Total time spent handling RPCs.",
            "# TYPE grpc_server_handling_seconds_sum counter",
        ]
        for method, total in seconds:
            lines.append(f'grpc_server_handling_seconds_sum{{grpc_method="{method}"}} {total:.6f}')
        return "\n".join(lines) + "\n"


metrics = RpcMetrics()


class LoggingInterceptor(grpc.ServerInterceptor):
    """Log every unary RPC with its status code and duration."""

    def __init__(self, rpc_metrics: RpcMetrics = metrics):
        self.rpc_metrics = rpc_metrics

    def intercept_service(self, continuation, handler_call_details):
        handler = continuation(handler_call_details)
        if handler is None or handler.unary_unary is None:
            return handler

        method = handler_call_details.method
        behavior = handler.unary_unary

        def _logged(request, context):
            start = time.perf_counter()
            code = grpc.StatusCode.OK
            try:
                return behavior(request, context)
            except Exception:
                code = context.code() or grpc.StatusCode.UNKNOWN
                raise
            finally:
                elapsed = time.perf_counter() - start
                self.rpc_metrics.observe(method, code, elapsed)
                log = logger.info if code == grpc.StatusCode.OK else logger.warning
                log(f"{method} finished with {code.name} in {elapsed * 1000:.1f}ms")

        return grpc.unary_unary_rpc_method_handler(
            _logged,
            request_deserializer=handler.request_deserializer,
            response_serializer=handler.response_serializer,
        )
