import os
import sys

from dotenv import load_dotenv

from enums.currency import Currency
from enums.duplicate_add_policy import DuplicateAddPolicy
from enums.runtime_environment import RuntimeEnvironment

# Load .env but don't override existing environment variables
# This allows test runs to set RUNTIME_ENVIRONMENT=TEST before import
load_dotenv(".env", override=False)


def _exit_with_config_error(name: str, reason: Exception, expected: str) -> None:
    print(f"\n ERROR: Invalid {name} configuration\n", file=sys.stderr)
    print(f"Reason: {reason}", file=sys.stderr)
    print(f"Expected: {expected}", file=sys.stderr)
    print(f"Current value: {os.environ.get(name, '(not set)')}\n", file=sys.stderr)
    sys.exit(1)


def _parse_amount(name: str, default: str) -> float:
    value = float(os.environ.get(name, default))
    if value < 0:
        raise ValueError(f"{name} must not be negative (got: {value})")
    return value


def _parse_positive_int(name: str, default: str) -> int:
    value = int(os.environ.get(name, default))
    if value <= 0:
        raise ValueError(f"{name} must be positive (got: {value})")
    return value


def _parse_non_negative_int(name: str, default: str) -> int:
    value = int(os.environ.get(name, default))
    if value < 0:
        raise ValueError(f"{name} must not be negative (got: {value})")
    return value


# Parse RUNTIME_ENVIRONMENT with clear error message on misconfiguration
try:
    RUNTIME_ENVIRONMENT = RuntimeEnvironment(os.environ.get("RUNTIME_ENVIRONMENT", "DEV"))
except ValueError as e:
    _exit_with_config_error(
        "RUNTIME_ENVIRONMENT", e, ", ".join(env.value for env in RuntimeEnvironment)
    )

# Parse CURRENCY with error handling
try:
    CURRENCY = Currency(os.environ.get("CURRENCY", "INR"))
except ValueError as e:
    _exit_with_config_error("CURRENCY", e, ", ".join(c.value for c in Currency))

CURRENCY_SYMBOL = CURRENCY.get_symbol()

# Delivery pricing (merchant defaults, overridable per postal code by the delivery provider)
try:
    DEFAULT_DELIVERY_CHARGE = _parse_amount("DEFAULT_DELIVERY_CHARGE", "50")
except ValueError as e:
    _exit_with_config_error("DEFAULT_DELIVERY_CHARGE", e, "Non-negative amount (e.g., 50)")

try:
    FREE_DELIVERY_THRESHOLD = _parse_amount("FREE_DELIVERY_THRESHOLD", "1500")
except ValueError as e:
    _exit_with_config_error("FREE_DELIVERY_THRESHOLD", e, "Non-negative amount (e.g., 1500)")

# Promo code input behaviour
try:
    PROMO_DEBOUNCE_MS = _parse_positive_int("PROMO_DEBOUNCE_MS", "500")
except ValueError as e:
    _exit_with_config_error("PROMO_DEBOUNCE_MS", e, "Positive integer in milliseconds (e.g., 500)")

try:
    PROMO_MIN_LENGTH = _parse_positive_int("PROMO_MIN_LENGTH", "3")
except ValueError as e:
    _exit_with_config_error("PROMO_MIN_LENGTH", e, "Positive integer (e.g., 3)")

try:
    PROMO_ERROR_MIN_LENGTH = _parse_positive_int("PROMO_ERROR_MIN_LENGTH", "6")
except ValueError as e:
    _exit_with_config_error("PROMO_ERROR_MIN_LENGTH", e, "Positive integer (e.g., 6)")

# Cart line limits
try:
    CART_MESSAGE_MAX_LENGTH = _parse_positive_int("CART_MESSAGE_MAX_LENGTH", "25")
except ValueError as e:
    _exit_with_config_error("CART_MESSAGE_MAX_LENGTH", e, "Positive integer (e.g., 25)")

try:
    DEAL_QUANTITY_LIMIT = _parse_positive_int("DEAL_QUANTITY_LIMIT", "1")
except ValueError as e:
    _exit_with_config_error("DEAL_QUANTITY_LIMIT", e, "Positive integer (e.g., 1)")

try:
    EXPIRED_SLOT_GRACE_DAYS = _parse_non_negative_int("EXPIRED_SLOT_GRACE_DAYS", "1")
except ValueError as e:
    _exit_with_config_error("EXPIRED_SLOT_GRACE_DAYS", e, "Non-negative number of days (e.g., 1)")

try:
    DUPLICATE_ADD_POLICY = DuplicateAddPolicy.from_string(os.environ.get("DUPLICATE_ADD_POLICY", "reject"))
except ValueError as e:
    _exit_with_config_error(
        "DUPLICATE_ADD_POLICY", e, ", ".join(p.value for p in DuplicateAddPolicy)
    )

# Snapshot storage
DB_URL = os.environ.get("DB_URL", "sqlite+aiosqlite:///data/cart.db")

# Logging Configuration
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
try:
    LOG_RETENTION_DAYS = _parse_positive_int("LOG_RETENTION_DAYS", "7")
except ValueError as e:
    _exit_with_config_error("LOG_RETENTION_DAYS", e, "Positive number of days (e.g., 7)")

LOG_MASK_SECRETS = os.environ.get("LOG_MASK_SECRETS", "true") == "true"

# Fail fast on values that parse but contradict each other
from utils.config_validator import validate_or_exit

validate_or_exit(sys.modules[__name__])
