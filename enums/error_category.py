from enum import Enum


class ErrorCategory(str, Enum):
    VALIDATION = "validation"          # HTTP 400 with a field -> messages map
    BUSINESS_RULE = "business_rule"    # HTTP 400 / unsuccessful envelope with a backend message
    AUTH = "auth"                      # HTTP 401
    TRANSPORT = "transport"            # Connection failure or timeout
    NOT_FOUND = "not_found"            # HTTP 404
    SERVER = "server"                  # 403, 5xx and anything else unexpected
