import logging

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Attach a stream handler unless a host (e.g. the Functions worker) already did."""
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
    logging.getLogger("lrv").setLevel(level.upper())
    # the Azure SDK logs every HTTP request at INFO
    logging.getLogger("azure").setLevel(logging.WARNING)
