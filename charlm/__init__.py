from .characters import Vocabulary
from .corpus import load_text, split_text
from .datasets import WindowDataset, make_windows
from .errors import ArtifactError, CharLMError, ConfigError, CorpusError, VocabularyError
from .model import Architecture
from .ngram import NGramModel
from .seeding import seed_everything
from .trainer import TextTrainer, TrainerConfig
from .runtime import TextGenerator

__all__ = [
    "Vocabulary", "load_text", "split_text", "WindowDataset", "make_windows",
    "Architecture", "NGramModel", "seed_everything",
    "TextTrainer", "TrainerConfig", "TextGenerator",
    "CharLMError", "CorpusError", "VocabularyError", "ConfigError", "ArtifactError",
    "train", "load",
]
__version__ = "0.1.0"

def train(corpus: str, *,
          seq_length: int = 40,
          step: int = 3,
          epochs: int = 20,
          batch_size: int = 64,
          lr: float = 2e-3,
          eval_every: int = 100,
          seed: int | None = None,          # training RNG (None = random)
          outdir: str | None = None,
          use_cpu: bool = False,
          **options) -> TextGenerator:
    """Train a next-char model on ``corpus`` and return a TextGenerator."""
    cfg = TrainerConfig(
        corpus=corpus, seq_length=seq_length, step=step, epochs=epochs,
        batch_size=batch_size, lr=lr, eval_every=eval_every, seed=seed,
        outdir=outdir, use_cpu=use_cpu, **options
    )
    trainer = TextTrainer(cfg=cfg, autostart=True)
    return TextGenerator.from_artifacts(trainer.outdir, device=trainer.device)

def load(path: str) -> TextGenerator:
    """Load a previously trained generator from an artifacts folder."""
    return TextGenerator.from_artifacts(path)
