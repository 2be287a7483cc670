import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass(slots=True)
class Config:
    # --- Timing (milliseconds) ---
    ROLL_DELAY_MS: int = int(os.getenv("LUDO_ROLL_DELAY_MS", 600))
    AUTO_SKIP_DELAY_MS: int = int(os.getenv("LUDO_AUTO_SKIP_DELAY_MS", 1000))
    EASY_THINK_MS: int = int(os.getenv("LUDO_EASY_THINK_MS", 800))
    MEDIUM_THINK_MS: int = int(os.getenv("LUDO_MEDIUM_THINK_MS", 1200))
    RESUME_DELAY_MS: int = int(os.getenv("LUDO_RESUME_DELAY_MS", 500))

    # --- Easy opponent randomness ---
    EASY_RANDOM_PICK: float = float(os.getenv("LUDO_EASY_RANDOM_PICK", 0.3))
    EASY_NOISE: float = float(os.getenv("LUDO_EASY_NOISE", 30.0))
    EASY_TOP_K: int = 3

    def __post_init__(self):
        delays = (
            self.ROLL_DELAY_MS,
            self.AUTO_SKIP_DELAY_MS,
            self.EASY_THINK_MS,
            self.MEDIUM_THINK_MS,
            self.RESUME_DELAY_MS,
        )
        if any(d < 0 for d in delays):
            raise ValueError("Delays must be non-negative")
        if not 0.0 <= self.EASY_RANDOM_PICK <= 1.0:
            raise ValueError("LUDO_EASY_RANDOM_PICK must be within [0, 1]")


@dataclass(slots=True)
class OpponentWeights:
    leave_base: int = 50
    capture: int = 100
    deep_capture: int = 50
    deep_capture_threshold: int = 26
    safe_square: int = 30
    enter_stretch: int = 40
    stretch_step: int = 10
    finish: int = 200
    advance_step: int = 5
    advance_bucket: int = 10
    danger_step: int = 10


config = Config()
opponent_weights = OpponentWeights()
