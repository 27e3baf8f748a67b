# scgep/logs/logger.py

"""
Per-run file logging.

Usage:
	from scgep.logs.logger import get_logger
	logger = get_logger(run_name="nightly", scenario="baseline", log_dir="logs")
	logger.info("Solve started")
"""

import logging
import os

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(run_name: str, scenario: str, log_dir: str = "logs", level: int = logging.INFO) -> logging.Logger:
	"""
	Logger that writes to ``<log_dir>/<run_name>_<scenario>.log``.

	Calling it twice for the same run and scenario returns the same logger
	without adding a second file handler.
	"""
	os.makedirs(log_dir, exist_ok=True)
	logger = logging.getLogger(f"scgep.run.{run_name}.{scenario}")
	logger.setLevel(level)
	path = os.path.abspath(os.path.join(log_dir, f"{run_name}_{scenario}.log"))
	for handler in logger.handlers:
		if isinstance(handler, logging.FileHandler) and handler.baseFilename == path:
			return logger
	handler = logging.FileHandler(path)
	handler.setFormatter(logging.Formatter(LOG_FORMAT))
	logger.addHandler(handler)
	return logger
