from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
import json, torch
from .characters import Vocabulary
from .errors import ArtifactError
from .model import Architecture
from .sampling import generate, prompt_window

@dataclass
class TextGenerator:
    model: torch.nn.Module
    vocab: Vocabulary
    seq_length: int
    device: torch.device
    outdir: Optional[Path] = None

    def generate(self, prompt: str = "", length: int = 200, temperature: float = 0.0,
                 top_k: Optional[int] = None, seed: Optional[int] = None) -> str:
        return generate(self.model, self.vocab, prompt, length, self.seq_length,
                        temperature=temperature, top_k=top_k, seed=seed, device=self.device)

    @torch.no_grad()
    def next_char_probabilities(self, prompt: str, top_k: int = 5) -> List[Tuple[str, float]]:
        self.model.eval()
        ctx = prompt_window(self.vocab, prompt, self.seq_length)
        x = torch.tensor([ctx], dtype=torch.long, device=self.device)
        probs = torch.softmax(self.model(x)[0], dim=-1)
        values, indices = torch.topk(probs, min(top_k, len(self.vocab)))
        return [(self.vocab.characters[int(i)], float(p)) for p, i in zip(values, indices)]

    @classmethod
    def from_artifacts(cls, path: Union[str, Path], device: Optional[torch.device] = None,
                       best: bool = True) -> "TextGenerator":
        path = Path(path); device = device or torch.device("cuda" if torch.cuda.is_available() else "cpu")
        if not path.is_dir():
            raise ArtifactError(f"artifacts folder not found: {path}")
        vocab = Vocabulary.load(path / "vocab.json")
        cfg_path = path / "config.json"
        if not cfg_path.is_file():
            raise ArtifactError(f"config file not found: {cfg_path}")
        try:
            cfg: Dict[str, Any] = json.loads(cfg_path.read_text(encoding="utf-8"))
        except ValueError as e:
            raise ArtifactError(f"malformed config file {cfg_path}: {e}") from e
        weights = path / "model_best.pth"
        if not best or not weights.is_file():
            weights = path / "model.pth"
        if not weights.is_file():
            raise ArtifactError(f"no model weights in {path}")
        model = Architecture(
            len(vocab), emb_dim=int(cfg.get("emb_dim", 64)), hidden_dim=int(cfg.get("hidden_dim", 128)),
            num_layers=int(cfg.get("num_layers", 1)), dropout=float(cfg.get("dropout", 0.0)),
        ).to(device)
        model.load_state_dict(torch.load(weights, map_location=device))
        model.eval()
        return cls(model=model, vocab=vocab, seq_length=int(cfg.get("seq_length", 40)),
                   device=device, outdir=path)
