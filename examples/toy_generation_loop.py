#!/usr/bin/env python3
"""Drive a sampler chain with a toy bigram "model".

Shows the per-step loop a generation engine runs: produce logits, sample a
token through the chain, feed the token back. The model here is a random
bigram table, so the output is meaningless; the point is the plumbing.

Usage:
    python toy_generation_loop.py
    python toy_generation_loop.py --chain "mirostat2:tau=3" --steps 50

Configuration also comes from SC_* environment variables, e.g.:
    export SC_TEMPERATURE=1.2
    export SC_LOG_LEVEL=full
"""

from __future__ import annotations

import argparse
import logging

import numpy as np

from sampler_chain import SamplerChainConfig, SamplingSession

_VOCAB_SIZE = 64


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--chain", default=None, help="Chain description (overrides SC_CHAIN)")
    parser.add_argument("--steps", type=int, default=20, help="Tokens to generate")
    parser.add_argument("--seed", type=int, default=0, help="Seed for model and sampler")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(message)s")

    model_rng = np.random.default_rng(args.seed)
    bigram = model_rng.normal(0.0, 2.0, size=(_VOCAB_SIZE, _VOCAB_SIZE))

    config = SamplerChainConfig(
        random_source_type="seeded",
        random_seed=args.seed,
        fallback_mode="error",
        diagnostic_mode=True,
    )
    overrides = {"chain": args.chain} if args.chain else None

    with SamplingSession(config, overrides=overrides) as session:
        previous = 0
        tokens = []
        for _ in range(args.steps):
            token = session.step(bigram[previous])
            if token is None:
                break
            tokens.append(token)
            previous = token
        print("tokens:", tokens)
        print("stats:", session.sampling_logger.get_summary_stats())


if __name__ == "__main__":
    main()
