"""HTTP surface: response envelope, request IDs and the /api routers."""

from api.base import APIResponse, ErrorCodes, error_response, success_response
from api.middleware import RequestIDMiddleware, get_current_request_id
