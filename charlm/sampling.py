from __future__ import annotations
from typing import List, Optional

import torch
import torch.nn as nn

from .characters import Vocabulary


def greedy(logits: torch.Tensor) -> int:
    return int(logits.argmax(dim=-1))


def sample(logits: torch.Tensor, temperature: float = 1.0, top_k: Optional[int] = None,
           generator: Optional[torch.Generator] = None) -> int:
    """Draw one index from ``logits`` [V].

    ``temperature <= 0`` means greedy decoding. ``top_k`` masks every logit
    below the k-th largest before the softmax.
    """
    if temperature <= 0:
        return greedy(logits)
    logits = logits.detach().float().cpu() / temperature
    if top_k is not None and 0 < top_k < logits.shape[-1]:
        kth = torch.topk(logits, top_k).values[-1]
        logits = logits.masked_fill(logits < kth, float("-inf"))
    probs = torch.softmax(logits, dim=-1)
    return int(torch.multinomial(probs, 1, generator=generator))


def prompt_window(vocab: Vocabulary, prompt: str, seq_length: int) -> List[int]:
    """Encode ``prompt`` into exactly ``seq_length`` indices.

    Short prompts are left-padded with their own first character, long ones
    keep their tail. An empty prompt starts from the first vocabulary char.
    """
    context = vocab.encode(prompt or vocab.characters[0]).tolist()
    if len(context) < seq_length:
        context = [context[0]] * (seq_length - len(context)) + context
    return context[-seq_length:]


@torch.no_grad()
def generate(model: nn.Module, vocab: Vocabulary, prompt: str, length: int, seq_length: int,
             temperature: float = 0.0, top_k: Optional[int] = None, seed: Optional[int] = None,
             device: Optional[torch.device] = None) -> str:
    """Extend ``prompt`` by ``length`` characters, feeding each prediction back in."""
    device = device or next(model.parameters()).device
    model.eval()
    generator = torch.Generator()
    if seed is not None:
        generator.manual_seed(seed)
    else:
        generator.seed()

    prompt = prompt or vocab.characters[0]
    context = prompt_window(vocab, prompt, seq_length)

    out = []
    for _ in range(length):
        x = torch.tensor([context], dtype=torch.long, device=device)
        logits = model(x)[0]
        nxt = sample(logits, temperature=temperature, top_k=top_k, generator=generator)
        out.append(nxt)
        context = context[1:] + [nxt]
    return prompt + vocab.decode(out)
