import logging
import os


def get_logger(name="paint_pos"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        level_name = (os.getenv("PAINT_POS_LOG_LEVEL") or "INFO").strip().upper()
        logger.setLevel(getattr(logging, level_name, logging.INFO))
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(ch)
    return logger
