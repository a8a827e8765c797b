"""Access log line for every request: method, path, status, duration, client."""
import logging
import time

from flask import Flask, g, request

access_logger = logging.getLogger('repair_tracker.access')


def init_request_logging(app: Flask):
    """Register before/after hooks for request timing."""

    @app.before_request
    def _start_timer():
        g.request_start = time.perf_counter()

    @app.after_request
    def _log_request(response):
        start = g.get('request_start')
        if start is None:
            return response
        duration_ms = (time.perf_counter() - start) * 1000
        access_logger.info('%s %s %s %.1fms %s', request.method, request.path, response.status_code,
                           duration_ms, request.remote_addr)
        return response
