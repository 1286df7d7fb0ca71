"""
Common middleware for the Worksheet Store core
Request correlation for logs and responses.
"""

import logging
import uuid
from collections.abc import Callable

from django.http import HttpRequest, HttpResponse

from apps.common.logging import clear_request_context, set_request_context

logger = logging.getLogger(__name__)

# ===============================================================================
# REQUEST ID MIDDLEWARE
# ===============================================================================


class RequestIDMiddleware:
    """Add unique request ID for tracing and log correlation"""

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        # Honour an upstream id (load balancer / CDN) when it looks sane
        incoming = request.headers.get("X-Request-ID", "").strip()
        request_id = incoming if 0 < len(incoming) <= 64 else str(uuid.uuid4())
        request.META["REQUEST_ID"] = request_id

        set_request_context(
            request_id=request_id,
            ip_address=request.META.get("REMOTE_ADDR"),
        )
        try:
            response = self.get_response(request)
        finally:
            clear_request_context()

        # Add to response headers for debugging
        response["X-Request-ID"] = request_id
        return response
