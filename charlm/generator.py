#!/usr/bin/env python3
"""
Command line entry point for training and sampling.

Run:
    python3 -m charlm.generator train --corpus data/shakespeare.txt --epochs 20 --seed 42
    python3 -m charlm.generator sample --artifacts artifacts/run1 --prompt "To be" --temperature 0.8
    python3 -m charlm.generator ngram --corpus data/shakespeare.txt --order 4 --generate 300
"""

from __future__ import annotations
import argparse
import logging
import sys

from .errors import CharLMError
from .corpus import load_text, split_text
from .ngram import NGramModel
from .runtime import TextGenerator
from .trainer import TextTrainer, TrainerConfig

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Train and sample character-level text generators.")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    t = sub.add_parser("train", help="Train the neural next-char model")
    t.add_argument("--corpus", type=str, required=True)
    t.add_argument("--normalize-whitespace", action="store_true", help="Collapse whitespace runs to one space")
    t.add_argument("--seq-length", type=int, default=40)
    t.add_argument("--step", type=int, default=3, help="Stride between training windows")
    t.add_argument("--epochs", type=int, default=20)
    t.add_argument("--batch-size", type=int, default=64)
    t.add_argument("--lr", type=float, default=2e-3)
    t.add_argument("--emb-dim", type=int, default=64)
    t.add_argument("--hidden-dim", type=int, default=128)
    t.add_argument("--num-layers", type=int, default=1)
    t.add_argument("--dropout", type=float, default=0.0)
    t.add_argument("--val-fraction", type=float, default=0.1)
    t.add_argument("--eval-every", type=int, default=100, help="Optimizer steps between evaluations")
    t.add_argument("--sample-length", type=int, default=200)
    t.add_argument("--sample-temperature", type=float, default=0.8)
    t.add_argument("--patience", type=int, default=None)
    t.add_argument("--seed", type=int, default=None, help="Training seed (None=non-deterministic)")
    t.add_argument("--outdir", type=str, default=None)
    t.add_argument("--cpu", action="store_true")
    t.add_argument("--num-workers", type=int, default=0)

    s = sub.add_parser("sample", help="Generate text from trained artifacts")
    s.add_argument("--artifacts", type=str, required=True)
    s.add_argument("--prompt", type=str, default="")
    s.add_argument("--length", type=int, default=200)
    s.add_argument("--temperature", type=float, default=0.0, help="0 = greedy argmax")
    s.add_argument("--top-k", type=int, default=None)
    s.add_argument("--seed", type=int, default=None)
    s.add_argument("--last", action="store_true", help="Use model.pth instead of model_best.pth")

    n = sub.add_parser("ngram", help="Fit and sample the n-gram baseline")
    n.add_argument("--corpus", type=str, required=True)
    n.add_argument("--normalize-whitespace", action="store_true", help="Collapse whitespace runs to one space")
    n.add_argument("--order", type=int, default=3)
    n.add_argument("--generate", type=int, default=200)
    n.add_argument("--prompt", type=str, default="")
    n.add_argument("--temperature", type=float, default=1.0)
    n.add_argument("--method", choices=("weighted", "max"), default="weighted")
    n.add_argument("--seed", type=int, default=None)
    n.add_argument("--val-fraction", type=float, default=0.1)
    n.add_argument("--evaluate", type=str, default=None, help="Report perplexity on this file")
    n.add_argument("--save", type=str, default=None)
    return p.parse_args(argv)


def _train(args):
    cfg = TrainerConfig(
        corpus=args.corpus,
        normalize_whitespace=args.normalize_whitespace,
        seq_length=args.seq_length,
        step=args.step,
        epochs=args.epochs,
        batch_size=args.batch_size,
        lr=args.lr,
        emb_dim=args.emb_dim,
        hidden_dim=args.hidden_dim,
        num_layers=args.num_layers,
        dropout=args.dropout,
        val_fraction=args.val_fraction,
        eval_every=args.eval_every,
        sample_length=args.sample_length,
        sample_temperature=args.sample_temperature,
        patience=args.patience,
        seed=args.seed,
        outdir=args.outdir,
        use_cpu=args.cpu,
        num_workers=args.num_workers,
    )
    # Training runs during initialization
    TextTrainer(cfg=cfg, autostart=True)


def _sample(args):
    gen = TextGenerator.from_artifacts(args.artifacts, best=not args.last)
    print(gen.generate(args.prompt, length=args.length, temperature=args.temperature,
                       top_k=args.top_k, seed=args.seed))


def _ngram(args):
    train_text, val_text = split_text(
        load_text(args.corpus, normalize_whitespace=args.normalize_whitespace), args.val_fraction
    )
    model = NGramModel(order=args.order).fit(train_text)
    if val_text:
        logger.info("held-out perplexity: %.2f", model.perplexity(val_text))
    if args.evaluate:
        logger.info("perplexity on %s: %.2f", args.evaluate, model.perplexity(load_text(args.evaluate)))
    if args.save:
        model.save(args.save)
        logger.info("model saved to %s", args.save)
    if args.generate:
        print(model.generate(args.generate, prompt=args.prompt, temperature=args.temperature,
                             method=args.method, seed=args.seed))


COMMANDS = {"train": _train, "sample": _sample, "ngram": _ngram}


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        COMMANDS[args.command](args)
    except CharLMError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
