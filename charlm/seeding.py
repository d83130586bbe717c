import random
from typing import Optional

import torch


def seed_everything(seed: Optional[int]) -> None:
    """Seed python and torch RNGs. ``None`` leaves the run non-deterministic."""
    if seed is None:
        return
    random.seed(seed)
    torch.manual_seed(seed)
    if torch.cuda.is_available():
        torch.cuda.manual_seed_all(seed)
    torch.backends.cudnn.deterministic = True
    torch.backends.cudnn.benchmark = False
