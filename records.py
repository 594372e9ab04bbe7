#!/usr/bin/env python3
# records.py — parallel sweep over digit lengths keeping a shared persistence record
from __future__ import annotations
import logging, os, queue, sys, threading, time
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from multiprocessing import Manager
from typing import Any, List, Optional, TextIO, Tuple

import psutil

from canonical import (DIGIT_BUCKET, Candidate, bucket_index, bucket_upper,
                       candidates, count_candidates, initial_buckets)
from persistence import persistence

logger = logging.getLogger(__name__)

EXECUTORS = ("process", "thread")

class RecordInvariantError(RuntimeError):
    pass

# ---------- config ----------

def default_workers() -> int:
    return max(1, psutil.cpu_count(logical=True) or os.cpu_count() or 1)

@dataclass
class SearchConfig:
    max_digits: int = 100
    workers: Optional[int] = None
    executor: str = "process"
    floor: int = 2
    bucket_width: int = DIGIT_BUCKET

    def validate(self) -> None:
        if self.max_digits < 2:
            raise ValueError("max_digits must be >= 2")
        if self.workers is not None and self.workers < 1:
            raise ValueError("workers must be >= 1")
        if self.executor not in EXECUTORS:
            raise ValueError(f"executor must be one of {', '.join(EXECUTORS)}")
        if self.floor < 0:
            raise ValueError("floor must be >= 0")
        if self.bucket_width < 1:
            raise ValueError("bucket_width must be >= 1")

    def digit_lengths(self) -> range:
        return range(2, self.max_digits + 1)

    def effective_workers(self) -> int:
        return min(len(self.digit_lengths()), self.workers or default_workers())

# ---------- shared record ----------

@dataclass
class _Cell:
    value: int

@dataclass
class RecordBoard:
    """Record persistence, bucket countdowns and the outbox shared by all workers.

    `best` only ever grows and is written under `lock`; the outbox is fed under
    the same lock so the printer sees records in increasing order.
    """
    best: Any
    lock: Any
    left: Any
    left_lock: Any
    outbox: Any
    stopped: Any
    max_digits: int
    width: int = DIGIT_BUCKET

    @classmethod
    def local(cls, max_digits: int, floor: int = 2, width: int = DIGIT_BUCKET) -> "RecordBoard":
        return cls(_Cell(floor), threading.Lock(), initial_buckets(max_digits, width),
                   threading.Lock(), queue.Queue(), threading.Event(), max_digits, width)

    @classmethod
    def managed(cls, mgr, max_digits: int, floor: int = 2, width: int = DIGIT_BUCKET) -> "RecordBoard":
        return cls(mgr.Value("i", floor), mgr.Lock(), mgr.list(initial_buckets(max_digits, width)),
                   mgr.Lock(), mgr.Queue(), mgr.Event(), max_digits, width)

    def offer(self, p: int, cand: Candidate) -> bool:
        """Publish cand as the new record if p still beats the current one.

        search_digits always passes p >= 1; the guard is for direct callers.
        """
        if p < 1:
            raise RecordInvariantError(f"non-positive persistence {p} for {cand}")
        with self.lock:
            if p <= self.best.value:
                return False
            self.outbox.put(("record", p, cand.text()))
            self.best.value = p
        return True

    def finish_digits(self, digits: int) -> None:
        idx = bucket_index(digits, self.width)
        with self.left_lock:
            self.left[idx] -= 1
            remaining = self.left[idx]
        if remaining == 0:
            with self.lock:
                self.outbox.put(("finished", bucket_upper(idx, self.max_digits, self.width)))

# ---------- worker ----------

@dataclass
class DigitStats:
    digits: int
    evaluated: int
    records: int
    ms: float
    complete: bool = True

# candidates between looks at the stop flag (a manager round trip in process mode)
STOP_CHECK_EVERY = 256

def search_digits(digits: int, board: RecordBoard) -> DigitStats:
    """Evaluate every canonical form of one digit length against the shared record."""
    t0 = time.perf_counter()
    seen = board.best.value  # stale copy is fine: the record never shrinks
    evaluated = records = 0
    for cand in candidates(digits):
        if evaluated % STOP_CHECK_EVERY == 0 and board.stopped.is_set():
            return DigitStats(digits, evaluated, records, (time.perf_counter() - t0) * 1000.0, False)
        # the value already is the first digit product, hence the 1 +
        p = 1 + persistence(cand.value())
        evaluated += 1
        if p <= seen:
            continue
        seen = board.best.value
        if p > seen and board.offer(p, cand):
            records += 1
            seen = p
    board.finish_digits(digits)
    return DigitStats(digits, evaluated, records, (time.perf_counter() - t0) * 1000.0)

# ---------- printer ----------

def format_record(p: int, text: str) -> str:
    return f"{p:02d}:  {text}"

def format_finished(upper: int) -> str:
    return f"Finished searching at {upper} digits"

def drain(board: RecordBoard, out: TextIO, err: TextIO, seen: List[Tuple[int, str]], failure: List[BaseException]) -> None:
    """Print outbox messages until the None sentinel arrives.

    A failed write stops the whole search: the error is kept for the caller
    and the board is flagged so workers give up.
    """
    try:
        while True:
            msg = board.outbox.get()
            if msg is None:
                return
            if msg[0] == "record":
                _, p, text = msg
                seen.append((p, text))
                print(format_record(p, text), file=out, flush=True)
            elif msg[0] == "finished":
                print(format_finished(msg[1]), file=err, flush=True)
    except BaseException as exc:
        failure.append(exc)
        board.stopped.set()

# ---------- driver ----------

@dataclass
class RunSummary:
    max_digits: int
    workers: int
    executor: str
    best: int
    evaluated: int
    wall_ms: float
    records: List[Tuple[int, str]] = field(default_factory=list)

def _sweep(cfg: SearchConfig, board: RecordBoard, workers: int, pool_cls) -> List[DigitStats]:
    stats: List[DigitStats] = []
    if workers == 1:
        for d in cfg.digit_lengths():
            if board.stopped.is_set():
                break
            stats.append(search_digits(d, board))
            _log_digit(stats[-1])
        return stats
    with pool_cls(max_workers=workers) as ex:
        futs = [ex.submit(search_digits, d, board) for d in cfg.digit_lengths()]
        try:
            for fut in as_completed(futs):
                stats.append(fut.result())
                _log_digit(stats[-1])
                if board.stopped.is_set():
                    for f in futs:
                        f.cancel()
                    break
        except BaseException:
            for fut in futs:
                fut.cancel()
            raise
    return stats

def _log_digit(st: DigitStats) -> None:
    logger.debug("digits=%d candidates=%d records=%d ms=%.1f", st.digits, st.evaluated, st.records, st.ms)

def search(cfg: SearchConfig, out: Optional[TextIO] = None, err: Optional[TextIO] = None) -> RunSummary:
    cfg.validate()
    out = out if out is not None else sys.stdout
    err = err if err is not None else sys.stderr
    workers = cfg.effective_workers()
    executor = cfg.executor if workers > 1 else "inline"
    logger.info("search start: max_digits=%d workers=%d executor=%s floor=%d",
                cfg.max_digits, workers, executor, cfg.floor)

    t0 = time.perf_counter()
    seen: List[Tuple[int, str]] = []
    failure: List[BaseException] = []

    def sweep_with(board: RecordBoard, pool_cls) -> Tuple[List[DigitStats], int]:
        printer = threading.Thread(target=drain, args=(board, out, err, seen, failure), daemon=True)
        printer.start()
        try:
            stats = _sweep(cfg, board, workers, pool_cls)
        finally:
            board.outbox.put(None)
            printer.join()
        return stats, board.best.value

    if executor == "process":
        with Manager() as mgr:
            board = RecordBoard.managed(mgr, cfg.max_digits, cfg.floor, cfg.bucket_width)
            stats, best = sweep_with(board, ProcessPoolExecutor)
    else:
        board = RecordBoard.local(cfg.max_digits, cfg.floor, cfg.bucket_width)
        stats, best = sweep_with(board, ThreadPoolExecutor)

    if failure:
        raise failure[0]

    summary = RunSummary(cfg.max_digits, workers, executor, best,
                         sum(st.evaluated for st in stats),
                         (time.perf_counter() - t0) * 1000.0, seen)
    expected = sum(count_candidates(d) for d in cfg.digit_lengths())
    if summary.evaluated != expected:
        raise RecordInvariantError(f"evaluated {summary.evaluated} candidates, expected {expected}")
    logger.info("[run] workers=%d digits=2..%d records=%d best=%d candidates=%d wall_ms=%.1f",
                workers, cfg.max_digits, len(seen), best, summary.evaluated, summary.wall_ms)
    return summary

def run(max_digits: int = 100, **options) -> RunSummary:
    """Search every digit length from 2 to max_digits, printing each new record."""
    out = options.pop("out", None)
    err = options.pop("err", None)
    return search(SearchConfig(max_digits=max_digits, **options), out, err)
