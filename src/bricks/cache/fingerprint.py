import hashlib
import json
from dataclasses import asdict, is_dataclass
from typing import Any

FINGERPRINT_SIZE = hashlib.sha256().digest_size


def _default(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Cannot fingerprint {type(value).__name__}")


def fingerprint(**params: Any) -> bytes:
    """Fixed-size key derived deterministically from a computation's parameters.

    Parameter order does not matter; dataclasses hash by their field values.
    """
    canonical = json.dumps(params, sort_keys=True, separators=(",", ":"), default=_default)
    return hashlib.sha256(canonical.encode("utf-8")).digest()
