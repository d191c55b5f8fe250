"""
Centralized Logging and Credential Redaction
============================================

Logging setup for the OrangeLogic client. The login call carries the API
login ID and password in its query string, and every later call carries the
token as a form field, so everything routed through this module is scrubbed
before it reaches a handler.

Redaction rules:
----------------
- Passwords and other secrets: replaced by `***`.
- Tokens (`token`, `Token`, `<session>_token`): `***` plus the last 4
  characters, enough to tell two tokens apart in a log.
- Login IDs: first character plus `***`.

The same rules apply to nested dicts (request arguments, the `APIResponse`
envelope) and to `key=value` / `'key': 'value'` pairs inside plain strings.

Dependencies:
-------------
- logging: Standard library for output routing.
- re: Pattern-based redaction of strings.
"""

import json
import logging
import re
import sys
import time
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Optional


DEFAULT_LOG_DIR = Path.cwd() / "logs"
LOG_FILE_NAME = "orangelogic.log"
MAX_LOGGED_BODY = 1000

MASK = "***"

SECRET_KEYS = ("password", "passwd", "secret", "authorization", "api_key", "apikey")
LOGIN_KEYS = ("login", "loginid", "username")

# key=value (query strings, form bodies) and 'key': 'value' (reprs, JSON)
_KEY_VALUE_PATTERN = re.compile(
    r"""(\b(password|token|login)["']?\s*[=:]\s*["']?)([^"'&\s,}]+)""",
    re.IGNORECASE
)
# Bare long alphanumerics are most likely tokens
_LONG_TOKEN_PATTERN = re.compile(r"\b[a-zA-Z0-9]{32,}\b")


def _is_token_key(key_lower: str) -> bool:
    return key_lower == "token" or key_lower.endswith("_token")


def _redact(kind: str, value: Any, mask_value: str = MASK) -> Any:
    """Mask one value according to the kind of field holding it."""
    if not isinstance(value, str):
        return mask_value
    if kind == "token" and len(value) > 4:
        return f"{mask_value}{value[-4:]}"
    if kind == "login" and value:
        return f"{value[:1]}{mask_value}"
    return mask_value


def _mask_string(text: str, mask_value: str = MASK) -> str:
    def replace_pair(match):
        prefix, kind, value = match.group(1), match.group(2).lower(), match.group(3)
        return prefix + _redact(kind, value, mask_value)

    text = _KEY_VALUE_PATTERN.sub(replace_pair, text)
    return _LONG_TOKEN_PATTERN.sub(lambda m: f"{mask_value}{m.group(0)[-4:]}", text)


def mask_sensitive_data(data: Any, mask_value: str = MASK) -> Any:
    """
    Return a redacted copy of `data`.

    Dicts and lists are walked recursively; the key decides how a value is
    masked. Strings go through the pattern rules. Other values are returned
    as they are.
    """
    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            key_lower = str(key).lower()
            if any(secret in key_lower for secret in SECRET_KEYS):
                masked[key] = mask_value
            elif _is_token_key(key_lower):
                masked[key] = _redact("token", value, mask_value)
            elif key_lower in LOGIN_KEYS:
                masked[key] = _redact("login", value, mask_value)
            else:
                masked[key] = mask_sensitive_data(value, mask_value)
        return masked

    if isinstance(data, (list, tuple)):
        return type(data)(mask_sensitive_data(item, mask_value) for item in data)

    if isinstance(data, str):
        return _mask_string(data, mask_value)

    return data


class SensitiveDataFilter(logging.Filter):
    """
    Handler filter that redacts the fully formatted message.

    The record's arguments are merged into the message first, so credentials
    passed as `%s` arguments are caught as well as those written inline.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = _mask_string(record.getMessage())
        record.args = None
        return True


def _attach_handler(root: logging.Logger, handler: logging.Handler, level: int, formatter: logging.Formatter):
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(SensitiveDataFilter())
    root.addHandler(handler)


def setup_logging(
    log_level: int = logging.DEBUG,
    console_level: int = logging.INFO,
    log_format: Optional[str] = None,
    log_dir: Optional[Path] = None
) -> Path:
    """
    Route all client logging to a file and to stderr.

    Handlers installed by an earlier call are replaced. Both handlers redact
    credentials. stdout is left alone for command output.

    Args:
        log_level: Level for `<log_dir>/orangelogic.log`
        console_level: Level for stderr
        log_format: Custom format string
        log_dir: Directory for the log file (defaults to ./logs)

    Returns:
        Path of the log file
    """
    log_dir = Path(log_dir) if log_dir else DEFAULT_LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    formatter = logging.Formatter(
        log_format or "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    root = logging.getLogger()
    root.setLevel(min(log_level, console_level))
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    _attach_handler(root, logging.FileHandler(log_file, encoding="utf-8"), log_level, formatter)
    _attach_handler(root, logging.StreamHandler(sys.stderr), console_level, formatter)

    logging.getLogger(__name__).debug(f"Logging to {log_file}")
    return log_file


def log_config(config_name: str, config_data: Dict[str, Any], logger: Optional[logging.Logger] = None):
    """Log a settings dict with credentials redacted."""
    logger = logger or logging.getLogger(__name__)
    logger.info(f"Configuration: {config_name}")
    logger.debug(f"{config_name}: {json.dumps(mask_sensitive_data(config_data), sort_keys=True, default=str)}")


def log_api_call(func: Optional[Callable] = None, *, api_name: str = "API"):
    """
    Instrument a client method that reports failure by returning a falsy value.

    Logs the (redacted) keyword arguments on entry and the outcome with its
    duration on exit. When the call fails, the reason is taken from the
    client's `get_last_error()`. Exceptions are logged and re-raised.
    """
    def decorator(method: Callable) -> Callable:
        logger = logging.getLogger(method.__module__)
        label = f"{api_name} {method.__name__}"

        @wraps(method)
        def wrapper(client, *args, **kwargs):
            logger.debug(f"{label} - kwargs: {mask_sensitive_data(kwargs)}")
            started = time.perf_counter()

            try:
                result = method(client, *args, **kwargs)
            except Exception as e:
                logger.error(f"{label} raised {type(e).__name__} after {time.perf_counter() - started:.3f}s",
                             exc_info=True)
                raise

            elapsed = time.perf_counter() - started
            if result:
                logger.info(f"{label} succeeded in {elapsed:.3f}s")
            else:
                get_last_error = getattr(client, "get_last_error", None)
                reason = get_last_error() if callable(get_last_error) else ""
                logger.warning(f"{label} failed in {elapsed:.3f}s: {reason or 'no error recorded'}")
            return result

        return wrapper

    return decorator if func is None else decorator(func)


def log_api_request(
    logger: logging.Logger,
    method: str,
    endpoint: str,
    data: Optional[Any] = None,
    params: Optional[Dict] = None
):
    """Log an outgoing call; arguments are redacted and only logged at DEBUG."""
    logger.info(f"API Request: {method} {endpoint}")

    for label, payload in (("params", params), ("form", data)):
        if payload:
            logger.debug(f"Request {label}: {mask_sensitive_data(payload)}")


def log_api_response(
    logger: logging.Logger,
    status_code: int,
    response_data: Optional[Any] = None,
    elapsed_time: Optional[float] = None
):
    """
    Log a response status, with the envelope Code when there is one.

    The redacted body follows at DEBUG, cut to MAX_LOGGED_BODY characters.
    """
    summary = f"API Response: {status_code}"
    if elapsed_time:
        summary += f" ({elapsed_time:.3f}s)"

    envelope = response_data.get("APIResponse") if isinstance(response_data, dict) else None
    if isinstance(envelope, dict) and envelope.get("Code") is not None:
        summary += f" Code={envelope['Code']}"
    logger.info(summary)

    if response_data:
        body = json.dumps(mask_sensitive_data(response_data), default=str)
        if len(body) > MAX_LOGGED_BODY:
            body = body[:MAX_LOGGED_BODY] + "... (truncated)"
        logger.debug(f"Response body: {body}")
