"""
Startup checks for cart engine configuration.

Validates cart pricing configuration at startup to fail-fast
with clear error messages instead of wrong totals at checkout.
"""

import sys
from typing import Optional


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


def validate_delivery_pricing(delivery_charge: float, free_delivery_threshold: float) -> None:
    """
    Validate delivery charge and free delivery threshold.

    Args:
        delivery_charge: DEFAULT_DELIVERY_CHARGE value
        free_delivery_threshold: FREE_DELIVERY_THRESHOLD value

    Raises:
        ConfigValidationError: If either amount is negative
    """
    if delivery_charge < 0:
        raise ConfigValidationError(
            f"DEFAULT_DELIVERY_CHARGE must not be negative (got: {delivery_charge})\n"
            "Add to .env: DEFAULT_DELIVERY_CHARGE=50"
        )

    if free_delivery_threshold < 0:
        raise ConfigValidationError(
            f"FREE_DELIVERY_THRESHOLD must not be negative (got: {free_delivery_threshold})\n"
            "Add to .env: FREE_DELIVERY_THRESHOLD=1500"
        )


def validate_promo_input_lengths(min_length: int, error_min_length: int) -> None:
    """
    Validate promo preview thresholds.

    The invalid-code message must never show for input that is too short to be validated.

    Raises:
        ConfigValidationError: If PROMO_ERROR_MIN_LENGTH < PROMO_MIN_LENGTH
    """
    if error_min_length < min_length:
        raise ConfigValidationError(
            f"PROMO_ERROR_MIN_LENGTH ({error_min_length}) must be >= PROMO_MIN_LENGTH ({min_length})"
        )


def validate_required_config(value: Optional[str], name: str, example: str = "") -> None:
    """
    Fail when a required setting is empty or missing.

    Args:
        value: Current value from config
        name: Environment variable name
        example: Value suggested for .env in the error message

    Raises:
        ConfigValidationError: If the value is falsy
    """
    if not value:
        error_msg = f"{name} is required but not set!"
        if example:
            error_msg += f"\nAdd to .env: {name}={example}"
        raise ConfigValidationError(error_msg)


def validate_startup_config(config_module) -> None:
    """
    Run every check against the loaded config module.

    Args:
        config_module: The config module to validate

    Raises:
        ConfigValidationError: If any validation fails
    """
    validate_delivery_pricing(
        config_module.DEFAULT_DELIVERY_CHARGE,
        config_module.FREE_DELIVERY_THRESHOLD
    )
    validate_promo_input_lengths(
        config_module.PROMO_MIN_LENGTH,
        config_module.PROMO_ERROR_MIN_LENGTH
    )
    validate_required_config(
        getattr(config_module, 'DB_URL', None), 'DB_URL', 'sqlite+aiosqlite:///data/cart.db'
    )


def validate_or_exit(config_module) -> None:
    """
    Run validate_startup_config and exit with status 1 on the first failure.

    Args:
        config_module: The config module to validate
    """
    try:
        validate_startup_config(config_module)
    except ConfigValidationError as e:
        print("\n[Config] Invalid cart engine configuration:\n", file=sys.stderr)
        print(str(e), file=sys.stderr)
        print("\nStartup aborted. Please fix configuration and try again.\n", file=sys.stderr)
        sys.exit(1)
