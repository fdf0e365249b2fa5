# utils.py
"""
Utility functions for the particle field.

This module provides helper functions, such as logging setup, config
loading and random sampling, that are used across different parts of the
application but do not belong to a specific domain like physics or
rendering.
"""
import logging
import logging.handlers
import json
import os
from typing import Dict, Any, Optional

import numpy as np

# --- Data Contracts ---
#
# setup_logging(config: Dict[str, Any]) -> None:
#   - Inputs:
#     - config: A dictionary containing a "logging" key with "level",
#       "format", and "log_file" sub-keys.
#   - Outputs: None
#   - Side Effects: Configures the root Python logger. Creates a log
#     directory if it doesn't exist. Sets up a console handler and a
#     rotating file handler.
#   - Invariants: After this function runs, the logging system is
#     initialized and ready for use throughout the application.
#
# uniform_inclusive(rng, low, high, size) -> np.ndarray:
#   - Outputs: float64 array of shape (size,), every value in [low, high],
#     with both endpoints reachable.

# Number of evenly spaced steps used to draw a closed-interval fraction.
# 2**53 keeps every step exactly representable as a float64.
_UNIFORM_STEPS = 2 ** 53


def setup_logging(config: Dict[str, Any]) -> None:
    """
    Configures the logging system from a configuration dictionary.

    Sets up logging to both the console and a rotating file.
    """
    log_config = config.get('logging', {})
    log_level = log_config.get('level', 'INFO').upper()
    log_format = log_config.get('format', '%(asctime)s - %(levelname)s - %(message)s')
    log_file_path = log_config.get('log_file', 'logs/particles.log')

    # Ensure the log directory exists
    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    # Get the root logger
    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Clear existing handlers to avoid duplication
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Rotates when the log reaches 1MB, keeps 5 backup logs.
    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path, maxBytes=1024*1024, backupCount=5
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logging.info("Logging system initialized.")
    logging.debug(f"Log level set to {log_level}.")
    logging.debug(f"Log file path: {log_file_path}")


def load_config(path: str) -> Dict[str, Any]:
    """Loads a JSON configuration file."""
    logging.info(f"Loading configuration from {path}...")
    try:
        with open(path, 'r') as f:
            config = json.load(f)
        logging.info("Configuration loaded successfully.")
        return config
    except FileNotFoundError:
        logging.error(f"Configuration file not found at {path}.")
        raise
    except json.JSONDecodeError:
        logging.error(f"Error decoding JSON from {path}.")
        raise


def uniform_inclusive(
    rng: np.random.Generator, low: float, high: float, size: Optional[int] = None
) -> np.ndarray:
    """
    Draws uniform samples from the closed interval [low, high].

    ``Generator.uniform`` samples the half-open interval, so ``high`` itself
    can never come out. Drawing the fraction from 2**53 + 1 evenly spaced
    points of [0, 1] makes both endpoints reachable.
    """
    steps = rng.integers(0, _UNIFORM_STEPS, size=size, endpoint=True)
    fraction = steps / _UNIFORM_STEPS
    samples = low * (1.0 - fraction) + high * fraction
    # Rounding in the blend must not step outside the interval.
    return np.clip(samples, min(low, high), max(low, high))
