import json
import logging
import sys

REDACTED = "[REDACTED]"
_SENSITIVE_WORDS = ("key", "secret", "token", "password")
_RECORD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


def _extras(record: logging.LogRecord) -> dict:
    return {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS and not k.startswith("_")}


class RedactSecretsFilter(logging.Filter):
    """Blank out ``extra`` fields whose name looks like a credential."""

    def filter(self, record: logging.LogRecord) -> bool:
        for name in _extras(record):
            if any(word in name.lower() for word in _SENSITIVE_WORDS):
                setattr(record, name, REDACTED)
        return True


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {k: v for k, v in _extras(record).items() if v is not None}
        if context:
            line = f"{line} {json.dumps(context, default=str)}"
        return line


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level)
    if any(getattr(h, "_order_status_handler", False) for h in root.handlers):
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ContextFormatter("[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"))
    handler.addFilter(RedactSecretsFilter())
    handler._order_status_handler = True
    root.addHandler(handler)
