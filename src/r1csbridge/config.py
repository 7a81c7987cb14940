from __future__ import annotations
import logging
from dataclasses import dataclass

from r1csbridge.core.fieldla import BN254_PRIME

LOG_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

@dataclass
class BridgeConfig:
    prime: int = BN254_PRIME
    # reject witnesses that assign variables outside the circuit's partition
    strict: bool = True
    log_level: str = "info"

    def configure_logging(self):
        logging.basicConfig(
            level=LOG_LEVELS[self.log_level],
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
