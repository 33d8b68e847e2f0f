import os
import sys

from dotenv import load_dotenv

# Load .env but don't override existing environment variables
# This allows test scripts to set variables before import
load_dotenv(".env", override=False)

# Parse API_BASE_URL with clear error message on misconfiguration
try:
    _api_base_url_str = os.environ.get("API_BASE_URL")
    if not _api_base_url_str or len(_api_base_url_str.strip()) == 0:
        raise ValueError("API_BASE_URL environment variable is not set")
    API_BASE_URL = _api_base_url_str.strip().rstrip("/")
except ValueError as e:
    print(f"\n ERROR: Invalid API_BASE_URL configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Expected format: absolute http(s) URL of the marketplace backend", file=sys.stderr)
    print(f"Example: API_BASE_URL=https://shop-backend.example.com", file=sys.stderr)
    print(f"Current value: {os.environ.get('API_BASE_URL', '(not set)')}\n", file=sys.stderr)
    sys.exit(1)

# Parse API_TIMEOUT_SECONDS with error handling
try:
    API_TIMEOUT_SECONDS = float(os.environ.get("API_TIMEOUT_SECONDS", "30"))
    if API_TIMEOUT_SECONDS <= 0:
        raise ValueError(f"API_TIMEOUT_SECONDS must be positive (got: {API_TIMEOUT_SECONDS})")
except ValueError as e:
    print(f"\n ERROR: Invalid API_TIMEOUT_SECONDS configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Expected: Positive number of seconds (e.g., 10, 30)", file=sys.stderr)
    print(f"Current value: {os.environ.get('API_TIMEOUT_SECONDS', '(not set)')}\n", file=sys.stderr)
    sys.exit(1)

# Bearer token sent with every request (optional, session handling lives elsewhere)
API_ACCESS_TOKEN = os.environ.get("API_ACCESS_TOKEN", "")

APP_LANGUAGE = os.environ.get("APP_LANGUAGE", "en")  # Default to English

# Payment Confirmation Configuration
# After a cash/COD confirmation the backend may not have committed the payment yet,
# refetch errors inside this window are not shown to the user
PAYMENT_CONFIRMATION_GRACE_SECONDS = float(os.environ.get("PAYMENT_CONFIRMATION_GRACE_SECONDS", "1.5"))
PAYMENT_REFETCH_DELAY_SECONDS = float(os.environ.get("PAYMENT_REFETCH_DELAY_SECONDS", "0.5"))
PAYMENT_LINK_TTL_MINUTES = int(os.environ.get("PAYMENT_LINK_TTL_MINUTES", "15"))
PAYMENT_STATUS_POLL_SECONDS = float(os.environ.get("PAYMENT_STATUS_POLL_SECONDS", "5"))
PAYOS_CHECKOUT_BASE_URL = os.environ.get("PAYOS_CHECKOUT_BASE_URL", "https://pay.payos.vn/web/")

# Cart Configuration
CART_MAX_QUANTITY = int(os.environ.get("CART_MAX_QUANTITY", "999"))

# Logging Configuration
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_MASK_SECRETS = os.environ.get("LOG_MASK_SECRETS", "true") == "true"  # Mask sensitive data in logs
LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "7"))
