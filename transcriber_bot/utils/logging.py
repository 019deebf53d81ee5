# transcriber_bot/utils/logging.py
import os

from loguru import logger

_configured = False
_STYLE_KEYS = ("prefix", "color")


def _format(record) -> str:
    color = record["extra"].get("color", "green")
    # Всё, что привязано через bind(), кроме служебных ключей, выводим как key=value
    context = "".join(
        f" {key}={{extra[{key}]}}" for key in record["extra"] if key not in _STYLE_KEYS
    )
    return (
        f"<{color}>{{time:YYYY-MM-DD HH:mm:ss.SSS}}</{color}> | "
        "<b>{level:<8}</b> | "
        "<cyan>{name}:{function}:{line}</cyan> | "
        f"{{extra[prefix]}} <b>{{message}}</b>{context}\n{{exception}}"
    )


def configure_logger(prefix: str, color: str):
    """Configure loguru logger with a specific prefix and color."""
    global _configured
    # Only replace the default handler once per process
    if not _configured:
        logger.remove()
        logger.configure(extra={"prefix": "", "color": "green"})
        logger.add(
            lambda msg: print(msg, end=""),
            level=os.getenv("LOG_LEVEL", "DEBUG").upper(),
            format=_format,
            colorize=True,
        )
        _configured = True
    return logger.bind(prefix=prefix, color=color)
