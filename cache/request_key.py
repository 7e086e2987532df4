"""Cache keys for API requests."""
import hashlib
from typing import Any, Dict, Optional

KEY_PREFIX = 'eventbrite-request-'
HASH_LENGTH = 8


def build_key(method: str, params: Optional[Dict[str, Any]] = None) -> str:
    """
    Build a stable cache key for an API method and its parameters.

    Parameters are ordered by name before hashing so that insertion
    order does not affect the key.

    Args:
        method: API method name, e.g. ``user_list_events``
        params: Request parameters

    Returns:
        Key such as ``eventbrite-request-user_list_events-1a2b3c4d``
    """
    key = KEY_PREFIX + method
    if params:
        composite = '-'.join(f"{name}={params[name]}" for name in sorted(params))
        digest = hashlib.sha256(composite.encode('utf-8')).hexdigest()
        key += '-' + digest[:HASH_LENGTH]
    return key
