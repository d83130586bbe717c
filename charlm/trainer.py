from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Tuple, List, Dict, Any

import torch
import torch.nn as nn
import torch.utils.data as data

from .characters import Vocabulary
from .corpus import load_text, split_text
from .datasets import WindowDataset, make_windows
from .errors import ConfigError, CorpusError
from .model import Architecture
from .sampling import generate
from .seeding import seed_everything

logger = logging.getLogger(__name__)


@dataclass
class TrainerConfig:
    corpus: str = ""
    normalize_whitespace: bool = False  # collapse whitespace runs before building the vocab
    seq_length: int = 40
    step: int = 3                    # stride between training windows
    epochs: int = 20
    batch_size: int = 64
    lr: float = 2e-3
    emb_dim: int = 64
    hidden_dim: int = 128
    num_layers: int = 1
    dropout: float = 0.0
    val_fraction: float = 0.1
    eval_every: int = 100            # optimizer steps between evaluations
    sample_length: int = 200
    sample_temperature: float = 0.8
    patience: int | None = None      # evaluations without improvement before stopping
    seed: int | None = None          # None = non-deterministic
    outdir: str | None = None        # default artifacts/YYYYMMDD-HHMMSS
    use_cpu: bool = False
    num_workers: int = 0

    def validate(self) -> None:
        positive = ("seq_length", "step", "epochs", "batch_size", "emb_dim",
                    "hidden_dim", "num_layers", "eval_every")
        for name in positive:
            if getattr(self, name) < 1:
                raise ConfigError(f"{name} must be >= 1, got {getattr(self, name)}")
        if self.lr <= 0:
            raise ConfigError(f"lr must be > 0, got {self.lr}")
        if not 0.0 <= self.dropout < 1.0:
            raise ConfigError(f"dropout must be in [0, 1), got {self.dropout}")
        if not 0.0 <= self.val_fraction < 1.0:
            raise ConfigError(f"val_fraction must be in [0, 1), got {self.val_fraction}")
        if self.sample_length < 0:
            raise ConfigError(f"sample_length must be >= 0, got {self.sample_length}")
        if self.num_workers < 0:
            raise ConfigError(f"num_workers must be >= 0, got {self.num_workers}")
        if self.patience is not None and self.patience < 1:
            raise ConfigError(f"patience must be >= 1, got {self.patience}")
        if not self.corpus:
            raise ConfigError("corpus path is required")


class TextTrainer:
    """
    Trains a next-character model on a text corpus.

    Instantiating this class runs training if autostart=True.

    Artifacts:
      - model.pth, model_best.pth
      - vocab.json
      - config.json
      - history.json   (one row per evaluation)
      - README.txt
    """
    def __init__(self, cfg: TrainerConfig, autostart: bool = True):
        cfg.validate()
        self.cfg = cfg
        self.device = torch.device("cpu" if cfg.use_cpu or not torch.cuda.is_available() else "cuda")
        seed_everything(cfg.seed)

        text = load_text(cfg.corpus, normalize_whitespace=cfg.normalize_whitespace)
        # vocabulary covers the whole corpus so validation never meets an unknown char
        self.vocab = Vocabulary.from_text(text)
        train_text, val_text = split_text(text, cfg.val_fraction)

        self.train_x, self.train_y = make_windows(self.vocab.encode(train_text), cfg.seq_length, cfg.step)
        if self.train_x.shape[0] == 0:
            raise CorpusError(
                f"corpus of {len(train_text)} training chars is too short for seq_length {cfg.seq_length}"
            )
        self.val_x, self.val_y = make_windows(self.vocab.encode(val_text), cfg.seq_length, 1)
        if self.val_x.shape[0] == 0:
            logger.warning("validation split holds no full window; evaluating on training windows")
            self.val_x, self.val_y = self.train_x, self.train_y

        loader_gen = torch.Generator()
        if cfg.seed is not None:
            loader_gen.manual_seed(cfg.seed)
        self.loader = data.DataLoader(
            WindowDataset(self.train_x, self.train_y), batch_size=cfg.batch_size, shuffle=True,
            num_workers=cfg.num_workers, generator=loader_gen,
        )

        self.model = Architecture(
            len(self.vocab), emb_dim=cfg.emb_dim, hidden_dim=cfg.hidden_dim,
            num_layers=cfg.num_layers, dropout=cfg.dropout,
        ).to(self.device)
        self.criterion = nn.CrossEntropyLoss()
        self.opt = torch.optim.Adam(self.model.parameters(), lr=cfg.lr)

        ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        self.outdir = Path(cfg.outdir or f"artifacts/{ts}")
        self.outdir.mkdir(parents=True, exist_ok=True)

        self.global_step = 0
        self.best_loss = math.inf
        self.train_loss = math.nan
        self.stale_evals = 0
        self.history: List[Dict[str, Any]] = []

        logger.info(
            "corpus %s: %d chars, vocab %d, %d train windows, %d val windows, device %s",
            cfg.corpus, len(text), len(self.vocab), self.train_x.shape[0], self.val_x.shape[0], self.device,
        )

        if autostart:
            self.run()

    # -------- public API --------
    def run(self):
        self.vocab.save(self.outdir / "vocab.json")
        self._save_config()
        for epoch in range(1, self.cfg.epochs + 1):
            stop = self._train_epoch(epoch)
            if not stop and self.global_step % self.cfg.eval_every != 0:
                # close every epoch with an evaluation unless one just ran
                stop = self._checkpoint(epoch)
            if stop:
                logger.info("No improvement for %d evaluations. Stopping early.", self.cfg.patience)
                break
        self._finalize()

    @torch.no_grad()
    def evaluate(self, inputs: torch.Tensor, targets: torch.Tensor) -> Tuple[float, float]:
        self.model.eval()
        total, correct, count = 0.0, 0, 0
        for start in range(0, inputs.shape[0], self.cfg.batch_size):
            x = inputs[start:start + self.cfg.batch_size].to(self.device)
            y = targets[start:start + self.cfg.batch_size].to(self.device)
            logits = self.model(x)
            total += self.criterion(logits, y).item() * y.size(0)
            correct += (logits.argmax(dim=-1) == y).sum().item()
            count += y.size(0)
        return total / max(count, 1), correct / max(count, 1)

    def sample(self, prompt: str = "", length: int | None = None) -> str:
        prompt = prompt or self.vocab.decode(self.val_x[0].tolist())
        return generate(
            self.model, self.vocab, prompt,
            length=self.cfg.sample_length if length is None else length,
            seq_length=self.cfg.seq_length, temperature=self.cfg.sample_temperature,
            seed=self.cfg.seed, device=self.device,
        )

    # -------- internals --------
    def _train_epoch(self, epoch: int) -> bool:
        self.model.train()
        total, count = 0.0, 0
        for x, y in self.loader:
            x = x.to(self.device)
            y = y.to(self.device)
            self.opt.zero_grad(set_to_none=True)
            loss = self.criterion(self.model(x), y)
            loss.backward()
            self.opt.step()
            total += loss.item() * y.size(0)
            count += y.size(0)
            self.global_step += 1
            self.train_loss = total / count
            if self.global_step % self.cfg.eval_every == 0:
                if self._checkpoint(epoch):
                    return True
                self.model.train()
        return False

    def _checkpoint(self, epoch: int) -> bool:
        """Evaluate, log a sample and save the best model. Returns True to stop."""
        val_loss, val_acc = self.evaluate(self.val_x, self.val_y)
        row = {
            "epoch": epoch,
            "step": self.global_step,
            "train_loss": self.train_loss,
            "val_loss": val_loss,
            "val_acc": val_acc,
        }
        self.history.append(row)
        logger.info(
            "Epoch %03d step %06d | train %.4f | val %.4f acc %.3f",
            epoch, self.global_step, self.train_loss, val_loss, val_acc,
        )
        if self.cfg.sample_length:
            logger.info("sample: %r", self.sample())

        if val_loss < self.best_loss:
            self.best_loss = val_loss
            self.stale_evals = 0
            torch.save(self.model.state_dict(), self.outdir / "model_best.pth")
            logger.debug("saved model_best.pth (val %.4f)", val_loss)
        else:
            self.stale_evals += 1
        return self.cfg.patience is not None and self.stale_evals >= self.cfg.patience

    def _save_config(self):
        (self.outdir / "config.json").write_text(json.dumps(asdict(self.cfg), indent=2), encoding="utf-8")

    def _finalize(self):
        torch.save(self.model.state_dict(), self.outdir / "model.pth")
        (self.outdir / "history.json").write_text(json.dumps(self.history, indent=2), encoding="utf-8")
        self._save_config()
        (self.outdir / "README.txt").write_text(
            "Artifacts for a character-level next-char model.\n"
            f"- corpus: {self.cfg.corpus}\n"
            f"- device: {self.device}\n"
            f"- best val loss: {self.best_loss:.4f}\n"
            f"- see config.json for full TrainerConfig\n"
            f"- see history.json for per-evaluation metrics\n",
            encoding="utf-8",
        )
        logger.info("artifacts written to %s", self.outdir)
