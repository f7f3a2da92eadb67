"""Benchmark tokenize_batch() on a slice of the Sci-Fi Gutenberg dataset.

Outputs a markdown table row with the columns:
  Corpus Size | Vocab Size | Engine | Load Time |
  Tokenizing Throughput | Compression Ratio | Size Reduction
"""

import argparse
import logging
import time
from pathlib import Path

from datasets import load_dataset

from piecetok import from_pretrained

HF_DATASET = "stevez80/Sci-Fi-Books-gutenberg"


def load_corpus(num_docs: int | None) -> list[str]:
    """Load up to `num_docs` documents via dataset indexing; full dataset when None."""
    print(f"Loading {HF_DATASET} (non-streaming) …")
    ds = load_dataset(HF_DATASET, split="train")
    if num_docs is not None:
        return ds[:num_docs]["text"]
    return ds["text"]


def main() -> None:
    """Run the tokenization benchmark and print a markdown table row."""
    parser = argparse.ArgumentParser(
        description="Benchmark PieceTok tokenize_batch() on a pretrained vocabulary."
    )
    parser.add_argument(
        "metadata",
        type=Path,
        help="Path to a .json tokenizer metadata dump.",
    )
    parser.add_argument(
        "--num-docs",
        type=int,
        default=None,
        help="Number of documents to tokenize (default: full dataset).",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Thread count for batch mode (default: CPU count).",
    )
    parser.add_argument(
        "--mode",
        choices=["auto", "batch", "off"],
        default="auto",
        help="Parallel mode for tokenize_batch() (default: auto).",
    )
    parser.add_argument("--verbose", action="store_true", help="Log loading details.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    t0 = time.perf_counter()
    tokenizer = from_pretrained(args.metadata)
    load_secs = time.perf_counter() - t0

    docs = load_corpus(args.num_docs)
    if not docs:
        raise RuntimeError("No documents loaded from dataset.")

    total_bytes = sum(len(d.encode("utf-8")) for d in docs)
    corpus_mb = total_bytes / (1024 * 1024)

    # --- Tokenizing ---
    t0 = time.perf_counter()
    encoded = tokenizer.tokenize_batch(
        docs, num_workers=args.workers, parallel_mode=args.mode
    )
    tokenize_elapsed = time.perf_counter() - t0
    tokenize_mbps = total_bytes / tokenize_elapsed / (1024 * 1024)

    # --- Compression stats ---
    total_tokens = sum(len(seq) for seq in encoded)
    compression_ratio = total_bytes / max(total_tokens, 1)
    size_reduction = (1 - 1 / compression_ratio) * 100

    # --- Output ---
    engine = tokenizer.vocab.type.value
    print()
    header = (
        f"| {'Corpus Size':22} | {'Vocab Size':10} | {'Engine':6} | {'Load Time':12} "
        f"| {'Tokenizing Throughput':29} "
        f"| {'Compression Ratio':17} | {'Size Reduction':14} |"
    )
    sep = (
        f"| {'-' * 22} | {'-' * 10} | {'-' * 6} | {'-' * 12} "
        f"| {'-' * 29} "
        f"| {'-' * 17} | {'-' * 14} |"
    )
    row = (
        f"| {f'{corpus_mb:.2f} MB':22} | {tokenizer.vocab_size():10,} | {engine:6} "
        f"| {f'{load_secs:.2f} secs':12} "
        f"| {f'{tokenize_mbps:.2f} MB/sec':29} "
        f"| {f'{compression_ratio:.2f}x':17} | {f'{size_reduction:.1f}%':14} |"
    )
    print(header)
    print(sep)
    print(row)
    print()


if __name__ == "__main__":
    main()
