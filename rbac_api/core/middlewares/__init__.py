from .headers import security_headers_middleware
from .logging import request_logging_middleware

__all__ = ["request_logging_middleware", "security_headers_middleware"]
