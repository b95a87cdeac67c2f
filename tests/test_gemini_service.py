from concurrent.futures import ThreadPoolExecutor
import threading
import time

from mentara.api.services.ai_services import GeminiService


class SlowModel:
    def __init__(self):
        self.calls = 0
        self._lock = threading.Lock()

    def generate_content(self, contents, generation_config=None):
        with self._lock:
            self.calls += 1
        time.sleep(0.01)

        class Response:
            text = "ok"
        return Response()


def _contents(i):
    return [{"role": "user", "parts": [f"message {i}"]}]


def test_concurrent_calls_respect_rate_limit():
    service = GeminiService()
    service.model = SlowModel()

    with ThreadPoolExecutor(max_workers=20) as pool:
        results = list(pool.map(lambda i: service.generate(_contents(i), 0.7, 100), range(30)))

    assert service.model.calls == service.requests_per_minute
    assert sum(1 for r in results if r == "ok") == service.requests_per_minute
    status = service.get_api_status()
    assert status["requests_this_minute"] == service.requests_per_minute
    assert status["cache_size"] == service.requests_per_minute


def test_cached_response_skips_the_model():
    service = GeminiService()
    service.model = SlowModel()

    assert service.generate(_contents(1), 0.7, 100) == "ok"
    assert service.generate(_contents(1), 0.7, 100) == "ok"
    assert service.model.calls == 1


def test_reset_rate_limits_clears_backoff():
    service = GeminiService()
    service._handle_rate_limit_error(RuntimeError("429"))
    assert service.get_api_status()["in_backoff"] is True

    service.reset_rate_limits()
    status = service.get_api_status()
    assert status["in_backoff"] is False
    assert status["consecutive_failures"] == 0
