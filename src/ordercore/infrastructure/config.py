"""Runtime settings, read from the environment.

Every setting has a default suitable for local use; set the matching
``ORDERCORE_*`` variable to override it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path

from ordercore.domain.exceptions import ConfigurationError
from ordercore.domain.model.checkout import PricingConfig
from ordercore.domain.model.value_objects import Money

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
_DATA_DIR = Path(__file__).resolve().parents[3] / "data"
_DEFAULT_DATABASE_URL = f"sqlite:///{_DATA_DIR / 'ordercore.db'}"


def _decimal(environ: dict[str, str], name: str, default: str) -> Decimal:
    raw = environ.get(name, default)
    try:
        value = Decimal(raw)
    except InvalidOperation as exc:
        raise ConfigurationError(f"{name} must be a decimal number, got {raw!r}") from exc
    if not value.is_finite():
        raise ConfigurationError(f"{name} must be a finite number, got {raw!r}")
    if value < 0:
        raise ConfigurationError(f"{name} cannot be negative, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    database_url: str = _DEFAULT_DATABASE_URL
    order_prefix: str = "SC"
    tax_rate: Decimal = Decimal("0.18")
    shipping_cost: Decimal = Decimal("49.00")
    free_shipping_threshold: Decimal = Decimal("999.00")
    environment: str = "development"
    log_level: str | None = None

    @staticmethod
    def from_env(environ: dict[str, str] | None = None) -> Settings:
        env = dict(os.environ if environ is None else environ)
        prefix = env.get("ORDERCORE_ORDER_PREFIX", "SC").strip()
        if not prefix or "-" in prefix:
            raise ConfigurationError(
                f"ORDERCORE_ORDER_PREFIX must be non-empty and contain no '-', got {prefix!r}"
            )
        tax_rate = _decimal(env, "ORDERCORE_TAX_RATE", "0.18")
        if tax_rate > 1:
            raise ConfigurationError("ORDERCORE_TAX_RATE is a fraction, e.g. 0.18 for 18%")
        return Settings(
            database_url=env.get("ORDERCORE_DATABASE_URL", _DEFAULT_DATABASE_URL),
            order_prefix=prefix,
            tax_rate=tax_rate,
            shipping_cost=_decimal(env, "ORDERCORE_SHIPPING_COST", "49.00"),
            free_shipping_threshold=_decimal(env, "ORDERCORE_FREE_SHIPPING_THRESHOLD", "999.00"),
            environment=env.get("ORDERCORE_ENV", "development").lower(),
            log_level=env.get("LOG_LEVEL"),
        )

    @property
    def pricing(self) -> PricingConfig:
        return PricingConfig(
            tax_rate=self.tax_rate,
            shipping_cost=Money(self.shipping_cost),
            free_shipping_threshold=Money(self.free_shipping_threshold),
        )
