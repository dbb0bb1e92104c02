"""
Pricing configuration loading.

Loads an alternative pricing schedule from YAML for injection into
the invoice calculator.
"""

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict

import yaml

from usage_invoicing.core.coercion import INT32_MAX, fits_decimal
from usage_invoicing.core.pricing import PricingSchedule

RATE_KEYS = ("api_rate_tier1", "api_rate_tier2", "storage_rate_per_gb", "compute_rate_per_minute")
THRESHOLD_KEY = "api_tier_threshold"


def load_pricing_config(path: str) -> PricingSchedule:
    """Load and validate a pricing schedule from a YAML file.
    
    Every key is required and unknown keys are rejected, so a typo can
    never silently fall back to a default rate.
    
    Args:
        path: Path to YAML pricing file
        
    Returns:
        Validated PricingSchedule
        
    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If the schedule is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Pricing config file not found: {path}")
    
    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in pricing file {path}: {e}")
    
    if not raw_config:
        raise ValueError("Pricing file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Pricing file must contain a mapping")
    
    return parse_pricing(raw_config)


def parse_pricing(data: Dict[str, Any]) -> PricingSchedule:
    """Validate a raw pricing mapping.
    
    Raises:
        ValueError: If keys are missing or unknown, or values are
            non-numeric or negative
    """
    allowed_keys = {THRESHOLD_KEY, *RATE_KEYS}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown pricing keys: {sorted(unknown_keys)}")
    
    for key in (THRESHOLD_KEY, *RATE_KEYS):
        if key not in data:
            raise ValueError(f"Missing required '{key}'")
    
    threshold = data[THRESHOLD_KEY]
    if isinstance(threshold, bool) or not isinstance(threshold, int):
        raise ValueError(f"'{THRESHOLD_KEY}' must be an integer")
    if threshold > INT32_MAX:
        raise ValueError(f"'{THRESHOLD_KEY}' must be <= {INT32_MAX}")
    
    rates = {key: _parse_rate(key, data[key]) for key in RATE_KEYS}
    
    return PricingSchedule(api_tier_threshold=threshold, **rates)


def _parse_rate(key: str, value: Any) -> Decimal:
    """Convert a YAML rate to Decimal via its text, avoiding float artifacts."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"'{key}' must be a number")
    try:
        rate = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"'{key}' must be a number")
    if not rate.is_finite():
        raise ValueError(f"'{key}' must be a finite number")
    if not fits_decimal(rate):
        raise ValueError(f"'{key}' is out of range or too precise")
    return rate
