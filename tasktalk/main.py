from __future__ import annotations
import argparse
import json
import logging
import os
from typing import Optional

from tasktalk.config import Config, load_config
from tasktalk.core.ledger import Ledger
from tasktalk.llm.planner import LLMPlanner
from tasktalk.llm.router import build_llm
from tasktalk.nl.pipeline import Interpreter
from tasktalk.store.base import Store
from tasktalk.store.json_file import JsonFileStore
from tasktalk.store.memory import MemoryStore

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def configure_logging(cfg: Config) -> None:
    logging.basicConfig(level=getattr(logging, cfg.log_level, logging.INFO), format=LOG_FORMAT)


def build_store(cfg: Config) -> Store:
    if cfg.store_backend == "memory":
        return MemoryStore()
    return JsonFileStore(os.path.join(cfg.data_dir, "store.json"))


def build_interpreter(cfg: Optional[Config] = None) -> Interpreter:
    cfg = cfg or load_config()
    llm = build_llm(cfg)
    planner = LLMPlanner(llm) if llm else None
    ledger = Ledger(os.path.join(cfg.data_dir, "ledger.jsonl")) if cfg.ledger_enabled else None
    return Interpreter(build_store(cfg), planner=planner, cfg=cfg, ledger=ledger)


def main(argv=None):
    ap = argparse.ArgumentParser(description="Run one natural-language command against the task store.")
    ap.add_argument("utterance", nargs="?", default="")
    ap.add_argument("--user", default=os.getenv("TASKTALK_USER", "local"))
    ap.add_argument("--entry", choices=("text", "voice", "chat"), default="text")
    ap.add_argument("--confirm", default="", help="confirmation token returned by an earlier command")
    ap.add_argument("--history", type=int, default=0, help="print the last N commands instead")
    ap.add_argument("--parse-only", action="store_true")
    args = ap.parse_args(argv)

    cfg = load_config()
    configure_logging(cfg)
    interp = build_interpreter(cfg)

    if args.history:
        out = {"commands": interp.history(args.user, limit=args.history)}
    elif args.confirm:
        out = interp.confirm(args.user, args.confirm).to_dict()
    elif args.parse_only:
        out = interp.parse(args.utterance).to_dict()
    else:
        out = interp.process(args.user, args.utterance, entry_point=args.entry).to_dict()
    print(json.dumps(out, indent=2, ensure_ascii=False, default=str))
    return 0 if out.get("success", True) else 1


if __name__ == "__main__":
    raise SystemExit(main())
