import logging

logger = logging.getLogger('ebs_autoscale')
logger.setLevel(logging.INFO)

# Prevent duplicate handlers during tests or reruns
if not logger.hasHandlers():
    handler = logging.StreamHandler()
    formatter = logging.Formatter('[%(levelname)s] %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)

def set_verbosity(verbose: bool) -> None:
    """Switch the package logger between INFO and DEBUG
    """
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
