import logging
import os
import sys
from pathlib import Path

logs_dir = Path(os.getenv("LOG_DIR", Path(__file__).parent / "logs"))
logs_dir.mkdir(parents=True, exist_ok=True)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(logs_dir / "scan_service.log")
    ]
)

def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
