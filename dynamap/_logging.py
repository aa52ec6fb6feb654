import hashlib
import logging
from typing import Any

# Create the library logger
logger = logging.getLogger("dynamap")

# Add NullHandler to prevent "No handlers could be found" warnings
# if the application doesn't configure logging.
logger.addHandler(logging.NullHandler())


def redact_key(key: dict[str, Any] | str) -> str:
    """
    Redacts key values for logging.
    Values are hashed so log lines can be correlated without revealing PII.
    """
    try:
        if isinstance(key, dict):
            redacted = {
                name: hashlib.sha256(str(value).encode("utf-8")).hexdigest()[:8]
                for name, value in key.items()
            }
            return str(redacted)
        return hashlib.sha256(str(key).encode("utf-8")).hexdigest()[:8]
    except Exception:
        return "<redaction_failed>"


def log_context(table: str, operation: str, **fields: Any) -> dict[str, Any]:
    """Builds the structured 'extra' mapping attached to every store log record."""
    return {"table": table, "operation": operation, **fields}
