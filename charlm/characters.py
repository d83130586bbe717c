from __future__ import annotations
import json
from pathlib import Path
from typing import Iterable, Union

import torch

from .errors import ArtifactError, CorpusError, VocabularyError


class Vocabulary:
    def __init__(self, characters: str):
        if len(set(characters)) != len(characters):
            raise VocabularyError("vocabulary contains duplicate characters")
        self.characters = characters
        self.num_characters = len(characters)
        self._index = {c: i for i, c in enumerate(characters)}

    @classmethod
    def from_text(cls, text: str) -> "Vocabulary":
        if not text:
            raise CorpusError("cannot build a vocabulary from empty text")
        return cls(''.join(sorted(set(text))))

    def __len__(self) -> int:
        return self.num_characters

    def __contains__(self, ch: str) -> bool:
        return ch in self._index

    def index(self, ch: str) -> int:
        try:
            return self._index[ch]
        except KeyError:
            raise VocabularyError(f"character {ch!r} is not in the vocabulary") from None

    def encode(self, text: str) -> torch.Tensor:
        return torch.tensor([self.index(c) for c in text], dtype=torch.long)

    def decode(self, indices: Iterable[int]) -> str:
        return ''.join(self.characters[int(i)] for i in indices)

    def save(self, path: Union[str, Path]) -> None:
        Path(path).write_text(
            json.dumps({"characters": self.characters}, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Vocabulary":
        path = Path(path)
        if not path.is_file():
            raise ArtifactError(f"vocabulary file not found: {path}")
        try:
            characters = json.loads(path.read_text(encoding="utf-8"))["characters"]
        except (ValueError, KeyError, TypeError) as e:
            raise ArtifactError(f"malformed vocabulary file {path}: {e}") from e
        if not isinstance(characters, str):
            raise ArtifactError(f"malformed vocabulary file {path}: characters must be a string")
        return cls(characters)
