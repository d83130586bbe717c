import json
import logging
import random

import pytest
import torch

import charlm
from charlm import TextGenerator, TextTrainer, TrainerConfig, seed_everything
from charlm.errors import ArtifactError, ConfigError, CorpusError


def _cfg(corpus, outdir, **kw):
    opts = dict(corpus=str(corpus), seq_length=8, step=2, epochs=2, batch_size=16,
                emb_dim=8, hidden_dim=16, eval_every=5, sample_length=10,
                seed=0, outdir=str(outdir), use_cpu=True)
    opts.update(kw)
    return TrainerConfig(**opts)


def test_train_and_load(corpus, tmp_path):
    gen = charlm.train(str(corpus), seq_length=8, epochs=2, batch_size=16, eval_every=5,
                       seed=0, outdir=str(tmp_path / "run"), use_cpu=True,
                       emb_dim=8, hidden_dim=16, sample_length=10)
    for name in ("model.pth", "model_best.pth", "vocab.json", "config.json", "history.json", "README.txt"):
        assert (tmp_path / "run" / name).exists()
    out = gen.generate("the ", length=20)
    assert out.startswith("the ") and len(out) == 24
    assert charlm.load(str(tmp_path / "run")).generate("the ", length=20) == out


def test_evaluates_at_step_cadence(corpus, tmp_path):
    trainer = TextTrainer(_cfg(corpus, tmp_path / "run"), autostart=True)
    history = json.loads((tmp_path / "run" / "history.json").read_text())
    steps = [row["step"] for row in history]
    assert steps == sorted(steps)
    assert any(s % 5 == 0 for s in steps)
    # every epoch ends with an evaluation
    per_epoch = trainer.global_step // 2
    assert per_epoch in steps and trainer.global_step in steps
    assert trainer.best_loss == min(row["val_loss"] for row in history)


def test_same_seed_same_run(corpus, tmp_path):
    a = TextTrainer(_cfg(corpus, tmp_path / "a"))
    b = TextTrainer(_cfg(corpus, tmp_path / "b"))
    assert a.history == b.history
    assert a.sample("the ", 30) == b.sample("the ", 30)


def test_patience_stops_early(corpus, tmp_path):
    trainer = TextTrainer(_cfg(corpus, tmp_path / "run", epochs=50, patience=1), autostart=False)
    trainer.evaluate = lambda inputs, targets: (1.0, 0.0)
    trainer.run()
    # first evaluation sets the best loss, the second one is stale
    assert [row["step"] for row in trainer.history] == [5, 10]
    assert (tmp_path / "run" / "model.pth").exists()


def test_next_char_probabilities(corpus, tmp_path):
    TextTrainer(_cfg(corpus, tmp_path / "run"))
    gen = TextGenerator.from_artifacts(tmp_path / "run")
    top = gen.next_char_probabilities("the qu", top_k=3)
    assert len(top) == 3
    assert top[0][1] >= top[1][1] >= top[2][1]


def test_config_validation(corpus, tmp_path):
    with pytest.raises(ConfigError):
        TextTrainer(_cfg(corpus, tmp_path, step=0))
    with pytest.raises(ConfigError):
        TextTrainer(_cfg(corpus, tmp_path, val_fraction=1.5))


def test_corpus_too_short(tmp_path):
    path = tmp_path / "tiny.txt"
    path.write_text("abc", encoding="utf-8")
    with pytest.raises(CorpusError):
        TextTrainer(_cfg(path, tmp_path / "run"))


def test_missing_artifacts(tmp_path):
    with pytest.raises(ArtifactError):
        TextGenerator.from_artifacts(tmp_path / "nope")
    (tmp_path / "empty").mkdir()
    with pytest.raises(ArtifactError):
        TextGenerator.from_artifacts(tmp_path / "empty")


def test_empty_validation_falls_back_to_training_windows(corpus, tmp_path, caplog):
    with caplog.at_level(logging.WARNING, logger="charlm.trainer"):
        trainer = TextTrainer(_cfg(corpus, tmp_path / "run", val_fraction=0.0), autostart=False)
    assert trainer.val_x is trainer.train_x
    assert trainer.val_y is trainer.train_y
    assert "evaluating on training windows" in caplog.text


def test_normalize_whitespace_shrinks_vocab(tmp_path):
    path = tmp_path / "ws.txt"
    path.write_text("ab\tab\n" * 40, encoding="utf-8")
    trainer = TextTrainer(_cfg(path, tmp_path / "run", normalize_whitespace=True), autostart=False)
    assert trainer.vocab.characters == " ab"


def test_seed_everything_none_leaves_state_alone():
    torch.manual_seed(123)
    expected = torch.rand(3)
    torch.manual_seed(123)
    seed_everything(None)
    assert torch.equal(torch.rand(3), expected)


def test_seed_everything_repeats_draws():
    seed_everything(5)
    a, ra = torch.rand(3), random.random()
    seed_everything(5)
    b, rb = torch.rand(3), random.random()
    assert torch.equal(a, b) and ra == rb


def test_malformed_config_is_artifact_error(corpus, tmp_path):
    TextTrainer(_cfg(corpus, tmp_path / "run", epochs=1, sample_length=0))
    (tmp_path / "run" / "config.json").write_text("{broken", encoding="utf-8")
    with pytest.raises(ArtifactError):
        TextGenerator.from_artifacts(tmp_path / "run")
