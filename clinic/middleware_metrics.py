"""
Prometheus 指标中间件：记录请求耗时、状态码
"""
import time

from clinic_workflow.exceptions import BaseAppException

from .metrics import (
    API_LIST_DURATION,
    API_WRITE_DURATION,
    HTTP_4XX,
    HTTP_5XX,
)


class MetricsMiddleware:
    """记录 HTTP 请求指标"""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        start = time.perf_counter()
        try:
            response = self.get_response(request)
            self._record(request, response.status_code, time.perf_counter() - start)
            return response
        except Exception as exc:
            duration = time.perf_counter() - start
            status = self._status_from_exception(exc)
            self._record(request, status, duration)
            raise

    def _status_from_exception(self, exc):
        if isinstance(exc, BaseAppException):
            return exc.http_status
        return 500

    def _record(self, request, status, duration):
        path = getattr(request, "path", "") or ""
        if status >= 500:
            HTTP_5XX.inc()
        elif status >= 400:
            HTTP_4XX.labels(code=str(status)).inc()

        if not path.startswith("/api/"):
            return
        if request.method in ("POST", "PATCH"):
            API_WRITE_DURATION.observe(duration)
        elif request.method == "GET":
            API_LIST_DURATION.observe(duration)
