"""
Count-based character n-gram model.

Counts are kept for every context length from 0 to ``order`` so that an unseen
context backs off to its longest known suffix instead of dead-ending.
"""

from __future__ import annotations
import json
import logging
import math
import random
from collections import Counter
from pathlib import Path
from typing import Dict, Optional, Union

from .errors import ArtifactError, CorpusError

logger = logging.getLogger(__name__)


class NGramModel:
    def __init__(self, order: int = 3):
        if order < 1:
            raise ValueError(f"order must be >= 1, got {order}")
        self.order = order
        self.counts: Dict[str, Counter] = {}

    @property
    def vocab(self) -> str:
        return ''.join(sorted(self.counts.get('', Counter())))

    def fit(self, text: str) -> "NGramModel":
        if len(text) <= self.order:
            raise CorpusError(f"text of length {len(text)} is too short for order {self.order}")
        counts: Dict[str, Counter] = {}
        for k in range(self.order + 1):
            for i in range(len(text) - k):
                counts.setdefault(text[i:i + k], Counter())[text[i + k]] += 1
        self.counts = counts
        logger.info(
            "n-gram model fitted: order=%d contexts=%d vocab=%d",
            self.order, len(counts), len(counts['']),
        )
        return self

    def _lookup(self, context: str) -> Counter:
        context = context[-self.order:] if context else ''
        for k in range(len(context), -1, -1):
            suffix = context[len(context) - k:]
            if suffix in self.counts:
                return self.counts[suffix]
        return Counter()

    def probabilities(self, context: str, smoothing_alpha: float = 0.0) -> Dict[str, float]:
        """Next-char distribution for the longest known suffix of ``context``."""
        counts = Counter(self._lookup(context))
        if smoothing_alpha > 0:
            for ch in self.vocab:
                counts[ch] += smoothing_alpha
        total = sum(counts.values())
        if total == 0:
            return {}
        return {ch: c / total for ch, c in counts.items()}

    def predict(self, context: str, method: str = "weighted", temperature: float = 1.0,
                rng: Optional[random.Random] = None) -> Optional[str]:
        if method not in ("weighted", "max"):
            raise ValueError(f"unknown sampling method: {method!r}")
        counts = self._lookup(context)
        if not counts:
            return None
        if method == "max" or temperature <= 0:
            return counts.most_common(1)[0][0]
        chars = list(counts.keys())
        weights = list(counts.values())
        if temperature != 1.0:
            weights = [w ** (1 / temperature) for w in weights]
        return (rng or random).choices(chars, weights=weights)[0]

    def generate(self, length: int = 200, prompt: str = "", temperature: float = 1.0,
                 method: str = "weighted", seed: Optional[int] = None) -> str:
        if not self.counts:
            raise CorpusError("n-gram model has not been fitted")
        rng = random.Random(seed)
        generated = prompt
        for _ in range(length):
            ch = self.predict(generated, method=method, temperature=temperature, rng=rng)
            if ch is None:
                break
            generated += ch
        return generated

    def perplexity(self, text: str, smoothing_alpha: float = 0.01) -> float:
        """Perplexity of ``text`` (lower is better); characters outside the vocab are skipped."""
        total_log_prob = 0.0
        count = 0
        for i in range(self.order, len(text)):
            probs = self.probabilities(text[i - self.order:i], smoothing_alpha=smoothing_alpha)
            p = probs.get(text[i], 0.0)
            if p > 0:
                total_log_prob += math.log(p)
                count += 1
        if count == 0:
            return float("inf")
        return math.exp(-total_log_prob / count)

    def save(self, path: Union[str, Path]) -> None:
        Path(path).write_text(
            json.dumps(
                {"order": self.order, "counts": {k: dict(v) for k, v in self.counts.items()}},
                ensure_ascii=False,
            ),
            encoding="utf-8",
        )

    @classmethod
    def load(cls, path: Union[str, Path]) -> "NGramModel":
        path = Path(path)
        if not path.is_file():
            raise ArtifactError(f"n-gram model file not found: {path}")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            model = cls(order=int(data["order"]))
            model.counts = {k: Counter(v) for k, v in data["counts"].items()}
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise ArtifactError(f"malformed n-gram model file {path}: {e}") from e
        return model
