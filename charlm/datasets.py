from typing import Tuple

import torch
import torch.utils.data as data


def make_windows(indices: torch.Tensor, seq_length: int, step: int) -> Tuple[torch.Tensor, torch.Tensor]:
    """Slice an index stream into (window, next char) pairs every ``step`` chars."""
    if seq_length < 1:
        raise ValueError(f"seq_length must be >= 1, got {seq_length}")
    if step < 1:
        raise ValueError(f"step must be >= 1, got {step}")
    n = indices.shape[0]
    if n <= seq_length:
        return (torch.empty((0, seq_length), dtype=torch.long),
                torch.empty((0,), dtype=torch.long))
    starts = torch.arange(0, n - seq_length, step)
    offsets = torch.arange(seq_length)
    inputs = indices[starts.unsqueeze(1) + offsets]   # [N, T]
    targets = indices[starts + seq_length]            # [N]
    return inputs.long(), targets.long()


class WindowDataset(data.Dataset):
    def __init__(self, inputs: torch.Tensor, targets: torch.Tensor):
        self.inputs = inputs
        self.targets = targets
    def __len__(self):
        return self.inputs.shape[0]
    def __getitem__(self, idx):
        return self.inputs[idx].long(), self.targets[idx].long()
