"""
Load tests for the Verdict Proxy

Many users submitting images at once is the situation the proxy exists for:
every request is queued and the backend sees them one at a time. These
scenarios measure queueing latency and check that no request is lost.

Usage:
    # Run load test with default settings
    locust -f load_tests/locustfile.py --host=http://localhost:23456

    # Run headless with specific parameters
    locust -f load_tests/locustfile.py --host=http://localhost:23456 \
           --users 20 --spawn-rate 5 --run-time 5m --headless

    # CI/CD integration
    python -m pytest load_tests/test_load_performance.py
"""

import base64
import logging
import os
import random
from pathlib import Path
from typing import Any, Dict, List

from locust import HttpUser, TaskSet, between, task
from locust.exception import StopUser

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

IMAGE_DIR = Path(os.getenv("LOAD_TEST_IMAGE_DIR", Path(__file__).parent.parent / "tests" / "data" / "samples"))
MODEL = os.getenv("LOAD_TEST_MODEL", "mistral-small3.1:latest")
PROMPT = 'Decide PASS or FAIL. Respond with {"verdict": ..., "rating": ..., "explanation": ...}.'

# 1x1 transparent PNG, used when no sample images are available
FALLBACK_IMAGE = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


class TestDataLoader:
    """Loads sample images as base64 strings"""

    def __init__(self, image_dir: Path = IMAGE_DIR):
        self.images: List[str] = []
        if image_dir.is_dir():
            for image_file in sorted(image_dir.iterdir()):
                if image_file.suffix.lower() in {".png", ".jpg", ".jpeg"}:
                    self.images.append(base64.b64encode(image_file.read_bytes()).decode("ascii"))
        if not self.images:
            logger.warning("No sample images in %s, using a 1x1 placeholder", image_dir)
            self.images.append(FALLBACK_IMAGE)
        logger.info("Loaded %d image(s) for load testing", len(self.images))

    def generate_payload(self) -> Dict[str, Any]:
        return {"model": MODEL, "prompt": PROMPT, "images": [random.choice(self.images)], "stream": False}

    def get_stats(self) -> Dict[str, int]:
        return {"images": len(self.images)}


test_data = TestDataLoader()


class MonitoringTasks(TaskSet):
    """Health and queue inspection endpoints"""

    @task(3)
    def health_check(self):
        with self.client.get("/verdict/health", catch_response=True, timeout=10) as response:
            if response.status_code == 200 and response.json().get("status") == "available":
                response.success()
            else:
                response.failure(f"Health check failed: {response.status_code}")

    @task(1)
    def queue_status(self):
        with self.client.get("/verdict/v1/system/queue", catch_response=True, timeout=10) as response:
            if response.status_code == 200 and "depth" in response.json():
                response.success()
            else:
                response.failure(f"Queue status failed: {response.status_code}")


class GenerateTasks(TaskSet):
    """Image submissions through the serial queue"""

    @task
    def generate(self):
        with self.client.post(
            "/api/generate",
            json=test_data.generate_payload(),
            catch_response=True,
            timeout=600,
            name="/api/generate",
        ) as response:
            if response.status_code == 200 and "response" in response.json():
                response.success()
            else:
                response.failure(f"Generate failed: {response.status_code} {response.text[:200]}")


class VerdictUser(HttpUser):
    """Simulates a UI user submitting images and polling status"""

    wait_time = between(1, 3)

    def on_start(self):
        try:
            response = self.client.get("/verdict/health", timeout=10)
            if response.status_code != 200:
                logger.error("Service health check failed, stopping user")
                raise StopUser()
        except StopUser:
            raise
        except Exception as e:
            logger.error(f"Failed to connect to service: {e}")
            raise StopUser()

    tasks = {
        MonitoringTasks: 2,
        GenerateTasks: 8,
    }


class LightLoadUser(HttpUser):
    """Light load user for CI/CD testing"""

    wait_time = between(2, 5)

    @task(3)
    def health_check(self):
        self.client.get("/verdict/health")

    @task(7)
    def generate(self):
        self.client.post("/api/generate", json=test_data.generate_payload(), timeout=600)


# Thresholds account for serialization: latency grows with concurrent users
PERFORMANCE_THRESHOLDS = {
    "avg_response_time_ms": 60000,
    "max_response_time_ms": 600000,
    "failure_rate_percent": 1.0,
}
