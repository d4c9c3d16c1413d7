import logging
import sys
from pathlib import Path

FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"

# Chatty below WARNING and not interesting to us.
QUIET_LOGGERS = ("urllib3", "websockets")


def setup_logging(level: str | int = "INFO", log_file: str | Path | None = None) -> None:
    """Configure the root logger once: stderr always, plus a file if asked.

    Call before the engine starts so early log lines are not lost.
    """
    root = logging.getLogger()
    root.setLevel(level if isinstance(level, int) else level.upper())

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(fmt=FORMAT, datefmt=DATEFMT)

    ch = logging.StreamHandler(sys.stderr)
    ch.setFormatter(fmt)
    root.addHandler(ch)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
        fh.setFormatter(fmt)
        root.addHandler(fh)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
