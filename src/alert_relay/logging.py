import logging


def configure_logging(level: str = "INFO") -> None:
    """
    Configure logging for the relay.
    """

    # Convert "INFO" -> logging.INFO etc.
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # The storage SDK and HTTP client are chatty at INFO; keep them quiet unless debugging.
    if numeric_level > logging.DEBUG:
        for name in ("httpx", "httpcore", "google.auth", "urllib3"):
            logging.getLogger(name).setLevel(logging.WARNING)
