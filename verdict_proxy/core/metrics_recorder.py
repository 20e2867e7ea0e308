from verdict_proxy.core.exceptions import ServiceError
from verdict_proxy.core.observability import get_metrics
from verdict_proxy.log import get_logger

logger = get_logger(__name__)


class MetricsRecorder:
    """
    Records queue and backend metrics without letting metric failures
    reach the request path.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def record_admission(self, depth: int, image_bytes: int) -> None:
        if not self.enabled:
            return
        try:
            metrics = get_metrics()
            metrics.record_queue_depth(depth)
            metrics.record_image_payload(image_bytes)
        except Exception as e:
            logger.debug(f"Metrics recording failed: {e}")

    def record_start(self, depth: int, waited: float) -> None:
        if not self.enabled:
            return
        try:
            metrics = get_metrics()
            metrics.record_queue_depth(depth)
            metrics.record_queue_wait(waited)
        except Exception as e:
            logger.debug(f"Metrics recording failed: {e}")

    def record_success(self, duration: float, model: str) -> None:
        if not self.enabled:
            return
        try:
            get_metrics().record_backend_call(duration, model, "success")
        except Exception as e:
            logger.debug(f"Metrics recording failed: {e}")

    def record_error(self, exception: Exception, duration: float, model: str) -> None:
        if not self.enabled:
            return
        try:
            metrics = get_metrics()
            metrics.record_backend_call(duration, model, "error")
            metrics.record_backend_error(self.extract_error_type(exception), model)
        except Exception as e:
            logger.debug(f"Metrics recording failed: {e}")

    def record_depth(self, depth: int) -> None:
        if not self.enabled:
            return
        try:
            get_metrics().record_queue_depth(depth)
        except Exception as e:
            logger.debug(f"Metrics recording failed: {e}")

    @staticmethod
    def extract_error_type(exception: Exception) -> str:
        """Error type string for consistent metric labels"""
        if isinstance(exception, ServiceError):
            return exception.error_type
        return type(exception).__name__
