"""
Usage record loading and validation.

Parses a JSON array of loosely-typed usage entries into strongly-typed
records. Each element is validated on its own, so one malformed element
never affects its siblings.

Validation order per element (first failure wins):
1. CustomerId - present, non-null and not blank once rendered as text
2. API_Calls - integer
3. Storage_GB - decimal
4. Compute_Minutes - integer
"""

import json
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Sequence, Tuple, Union

from .coercion import Coerced, coerce_customer_id, coerce_decimal, coerce_int
from .records import UNKNOWN_CUSTOMER, LoadResult, Rejection, UsageRecord
from usage_invoicing.observability.logger import get_logger

logger = get_logger(__name__)

NOT_AN_OBJECT = "Entry is not an object"

# (key, coercer, cause) in validation order, after CustomerId
USAGE_FIELDS: Sequence[Tuple[str, Callable[[Any], Coerced], str]] = (
    ("API_Calls", coerce_int, "Invalid API_Calls"),
    ("Storage_GB", coerce_decimal, "Invalid Storage_GB"),
    ("Compute_Minutes", coerce_int, "Invalid Compute_Minutes"),
)


class LoadFailure(Enum):
    """Batch-level failures; each aborts the whole load."""
    NOT_FOUND = "not_found"
    UNREADABLE = "unreadable"
    INVALID_JSON = "invalid_json"
    NOT_AN_ARRAY = "not_an_array"


class InputLoadError(Exception):
    """Raised when the input cannot produce a batch at all."""
    def __init__(self, message: str, failure: LoadFailure):
        super().__init__(message)
        self.failure = failure


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Unsupported JSON constant: {name}")


def load_records(path: Union[str, Path]) -> LoadResult:
    """Load and validate usage records from a JSON file.
    
    Args:
        path: Path to a JSON file whose root is an array
        
    Returns:
        LoadResult with valid records and rejections, both in input order
        
    Raises:
        InputLoadError: If the file is missing, unreadable, not JSON,
            or not an array
    """
    input_path = Path(path)
    if not input_path.is_file():
        raise InputLoadError(f"Input file not found at '{path}'", LoadFailure.NOT_FOUND)

    try:
        text = input_path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise InputLoadError(f"Unable to read file: {e}", LoadFailure.UNREADABLE) from e

    return parse_records(text)


def parse_records(text: str) -> LoadResult:
    """Parse JSON text and validate every element of its root array.
    
    Numbers, integers included, are parsed as exact decimals, never
    binary floats or unbounded ints.
    
    Raises:
        InputLoadError: If the text is not JSON or its root is not an array
    """
    try:
        root = json.loads(
            text, parse_float=Decimal, parse_int=Decimal, parse_constant=_reject_constant
        )
    except ValueError as e:
        raise InputLoadError(f"Invalid JSON: {e}", LoadFailure.INVALID_JSON) from e

    if not isinstance(root, list):
        raise InputLoadError("Root JSON is not an array", LoadFailure.NOT_AN_ARRAY)

    return validate_entries(root)


def validate_entries(entries: Sequence[Any]) -> LoadResult:
    """Validate already-parsed entries; never raises for bad elements."""
    result = LoadResult()
    for index, entry in enumerate(entries):
        outcome = _validate_entry(index, entry)
        if isinstance(outcome, Rejection):
            logger.debug("entry_rejected", index=index, reason=outcome.message)
            result.rejected.append(outcome)
        else:
            result.valid.append(outcome)

    logger.debug(
        "records_loaded",
        total=result.total,
        valid=len(result.valid),
        rejected=len(result.rejected),
    )
    return result


def _validate_entry(index: int, entry: Any) -> Union[UsageRecord, Rejection]:
    if not isinstance(entry, dict):
        return Rejection(index=index, cause=NOT_AN_OBJECT)

    customer = coerce_customer_id(entry.get("CustomerId"))
    if not customer.ok:
        return Rejection(index=index, cause=customer.reason, customer_id=UNKNOWN_CUSTOMER)

    values: Dict[str, Any] = {}
    for key, coerce, cause in USAGE_FIELDS:
        field = coerce(entry.get(key))
        if not field.ok:
            return Rejection(index=index, cause=cause, customer_id=customer.value)
        values[key] = field.value

    return UsageRecord(
        customer_id=customer.value,
        api_calls=values["API_Calls"],
        storage_gb=values["Storage_GB"],
        compute_minutes=values["Compute_Minutes"],
    )
