import logging, sys
from app.settings import settings

PIPELINE_LOGGER = "scoring_pipeline"


def configure_logging():
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    for noisy_logger in ("httpx", "httpcore", "httpcore.http11"):
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    if settings.PIPELINE_LOG_FILE:
        logger = logging.getLogger(PIPELINE_LOGGER)
        fh = logging.FileHandler(settings.PIPELINE_LOG_FILE, mode="a", encoding="utf-8")
        fh.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        if not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
            logger.addHandler(fh)
