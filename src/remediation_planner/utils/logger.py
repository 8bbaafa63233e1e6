# logger.py
import logging
import os


# This module sets up logging for the planner and the module runner.
def setup_logging(config, worker_name="planner"):
    prefix = f"{worker_name}.{os.getpid()}"

    # Handle both cases: config dict passed directly or full config with 'logging' key
    logging_config = config.get('logging', config) if isinstance(config, dict) else {}

    log_file = logging_config.get('file', 'logs/remediation.log')
    log_level = str(logging_config.get('level', 'INFO')).upper()

    # Create the directory if it doesn't exist
    log_dir = os.path.dirname(log_file)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir, exist_ok=True)

    log_format = f"[{prefix}] %(asctime)s - %(levelname)s - %(name)s - %(message)s"
    logging.basicConfig(
        filename=log_file,
        level=getattr(logging, log_level, logging.INFO),
        datefmt="%Y-%m-%d %H:%M:%S",
        format=log_format,
    )
