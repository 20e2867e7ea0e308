from unittest.mock import Mock, patch

from verdict_proxy.core.exceptions import BackendTimeoutError
from verdict_proxy.core.metrics_recorder import MetricsRecorder


class TestMetricsRecorder:
    @patch("verdict_proxy.core.metrics_recorder.get_metrics")
    def test_records_admission(self, mock_get_metrics):
        metrics = Mock()
        mock_get_metrics.return_value = metrics

        MetricsRecorder().record_admission(depth=3, image_bytes=1024)

        metrics.record_queue_depth.assert_called_once_with(3)
        metrics.record_image_payload.assert_called_once_with(1024)

    @patch("verdict_proxy.core.metrics_recorder.get_metrics")
    def test_records_backend_error_type(self, mock_get_metrics):
        metrics = Mock()
        mock_get_metrics.return_value = metrics

        MetricsRecorder().record_error(BackendTimeoutError("slow"), 1.5, "vision-v1")

        metrics.record_backend_call.assert_called_once_with(1.5, "vision-v1", "error")
        metrics.record_backend_error.assert_called_once_with("timeout", "vision-v1")

    @patch("verdict_proxy.core.metrics_recorder.get_metrics")
    def test_disabled_recorder_is_silent(self, mock_get_metrics):
        recorder = MetricsRecorder(enabled=False)

        recorder.record_admission(1, 10)
        recorder.record_start(1, 0.1)
        recorder.record_success(0.2, "vision-v1")
        recorder.record_depth(0)

        mock_get_metrics.assert_not_called()

    @patch("verdict_proxy.core.metrics_recorder.get_metrics")
    def test_metric_failures_are_contained(self, mock_get_metrics):
        mock_get_metrics.side_effect = RuntimeError("registry broken")

        # Must not raise
        MetricsRecorder().record_success(0.2, "vision-v1")
        MetricsRecorder().record_error(ValueError("boom"), 0.2, "vision-v1")

    def test_extract_error_type(self):
        assert MetricsRecorder.extract_error_type(BackendTimeoutError("slow")) == "timeout"
        assert MetricsRecorder.extract_error_type(KeyError("x")) == "KeyError"
