#!/usr/bin/env python3
"""CLI helper that reports which answer generator is configured."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
src_str = str(SRC_ROOT)
if src_str not in sys.path:
    sys.path.insert(0, src_str)

from polyglot_rag.config import Settings  # noqa: E402
from polyglot_rag.llm_provider import LLMGenerationError, get_llm  # noqa: E402
from polyglot_rag.prompt_builder import Passage  # noqa: E402
from polyglot_rag.services.rag import RAGService  # noqa: E402

_PING_PASSAGE = Passage(page=1, text="The sky is blue.")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--ping",
        action="store_true",
        help="Send one grounded question to the generator and print the answer.",
    )
    return parser.parse_args(argv)


def _configure_logging() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv or sys.argv[1:])
    _configure_logging()

    settings = Settings.from_env()
    llm = get_llm(settings.llm)
    status = llm.status()
    print(json.dumps(asdict(status), ensure_ascii=False, indent=2))

    if not args.ping:
        return 0
    if not status.model_loaded:
        logging.warning("No API key configured; the stub generator answers locally.")

    service = RAGService(settings=settings, llm=llm)
    try:
        answer = asyncio.run(service.answer_with_context("What color is the sky?", [_PING_PASSAGE]))
    except LLMGenerationError as error:
        logging.error("Generator request failed: %s", error)
        return 1

    logging.info("Model '%s' answered: %s", status.model_name, answer)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
