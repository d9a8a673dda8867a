"""Worker pool that crawls partitions of the result set in parallel.

The orchestrator thread and the worker threads only talk through three
channels:

  work    PartitionState  a slot to (re)start, sent at seeding and by every
                          worker when it stops, with its residual range
  result  RetrievedPage   one fetched detail page
  done    PartitionState  a slot that has finished for good

Each worker builds its own CrawlSession and Navigator. A slot that failed is
restarted on a brand-new session after a backoff, since the old session's
cookies and tokens may be what broke it.
"""

import random
import threading
import time
from collections import deque
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable

from tqdm import tqdm

from sg_film_scraper.config import DEFAULT_WORKERS, MAX_RETRIES, RETRY_BACKOFF
from sg_film_scraper.crawler import crawl_partition
from sg_film_scraper.models import PartitionState, RetrievedPage
from sg_film_scraper.navigator import Navigator
from sg_film_scraper.ranges import RecordRange, page_of
from sg_film_scraper.session import CrawlSession

WORK = "work"
RESULT = "result"
DONE = "done"


class Mailbox:
    """Named FIFO channels that a single receiver waits on together.

    ``receive`` blocks until any channel holds a message and then takes from
    one of the non-empty channels at random; no channel has priority. With a
    positive ``maxsize`` each channel holds at most that many messages and
    ``send`` blocks while its channel is full.
    """

    def __init__(self, *channels: str, maxsize: int = 0):
        self.maxsize = maxsize
        self._cond = threading.Condition()
        self._queues: dict[str, deque] = {name: deque() for name in channels}

    def _has_room(self, channel: str) -> bool:
        return self.maxsize <= 0 or len(self._queues[channel]) < self.maxsize

    def send(self, channel: str, item: object) -> None:
        with self._cond:
            self._cond.wait_for(lambda: self._has_room(channel))
            self._queues[channel].append(item)
            # Senders and the receiver wait on the same condition
            self._cond.notify_all()

    def receive(self) -> tuple[str, object]:
        with self._cond:
            self._cond.wait_for(lambda: any(self._queues.values()))
            ready = [name for name, queue in self._queues.items() if queue]
            channel = random.choice(ready)
            item = self._queues[channel].popleft()
            self._cond.notify_all()
            return channel, item

    def drain(self, channel: str) -> list:
        """Take every message currently waiting on ``channel``."""
        with self._cond:
            items = list(self._queues[channel])
            self._queues[channel].clear()
            self._cond.notify_all()
            return items


@dataclass
class CrawlSummary:
    """Outcome of a pool run."""

    retrieved: int = 0
    failed: list[PartitionState] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class CrawlPool:
    """Crawls a RecordRange with ``workers`` concurrent partitions."""

    def __init__(
        self,
        job: RecordRange,
        workers: int = DEFAULT_WORKERS,
        sink: Callable[[RetrievedPage], object] | None = None,
        *,
        backoff: float = RETRY_BACKOFF,
        max_retries: int | None = MAX_RETRIES,
        session_factory: Callable[[], CrawlSession] = CrawlSession,
        sleep: Callable[[float], None] = time.sleep,
        progress: bool = True,
    ):
        self.job = job
        self.workers = workers
        self.sink = sink
        self.backoff = backoff
        self.max_retries = max_retries
        self._session_factory = session_factory
        self._sleep = sleep
        self._progress = progress
        # A slot has at most one work or done message in flight, so only
        # result senders ever wait for room
        self._mailbox = Mailbox(WORK, RESULT, DONE, maxsize=workers)

    # -- Worker side -----------------------------------------------------------

    def _work(self, state: PartitionState) -> None:
        """Crawl one slot on a fresh session and report where it stopped."""
        residual = state.job

        def emit(page: RetrievedPage) -> None:
            nonlocal residual
            self._mailbox.send(RESULT, page)
            residual = residual.advance()

        try:
            if state.failed:
                self._sleep(self.backoff)
            with self._session_factory() as session:
                outcome = crawl_partition(Navigator(session), state.job, emit)
        except Exception as e:
            # Anything unexpected still has to reach the orchestrator, or the
            # slot would never finish
            outcome = PartitionState(job=residual, error=e)

        retries = 0
        if outcome.failed and outcome.job.start == state.job.start:
            retries = state.retries + 1
        self._mailbox.send(WORK, replace(outcome, slot=state.slot, retries=retries))

    def _start(self, state: PartitionState) -> None:
        # Daemon threads: an interrupt ends the process without waiting on requests
        thread = threading.Thread(
            target=self._work,
            args=(state,),
            name=f"crawl-slot-{state.slot}",
            daemon=True,
        )
        thread.start()

    # -- Orchestrator side -----------------------------------------------------

    def _gave_up(self, state: PartitionState) -> bool:
        return self.max_retries is not None and state.retries > self.max_retries

    def run(self) -> CrawlSummary:
        """Crawl every position in the job; returns once all slots are done."""
        parts = self.job.partition(self.workers)
        summary = CrawlSummary()

        print("=" * 60)
        print(f"  Crawling results {self.job} with {len(parts)} worker(s)")
        print(f"  Started at {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        print("=" * 60)
        for slot, part in enumerate(parts):
            print(f"  Slot {slot}: {part} (pages {part.page}-{page_of(part.stop - 1)})")
            self._mailbox.send(WORK, PartitionState(job=part, slot=slot))

        remaining = len(parts)
        bar = tqdm(total=self.job.size, desc="Crawling", unit="page", disable=not self._progress)
        try:
            while remaining:
                channel, msg = self._mailbox.receive()
                if channel == WORK:
                    self._handle_work(msg, summary)
                elif channel == RESULT:
                    self._store(msg, summary, bar)
                else:
                    remaining -= 1
                    tqdm.write(
                        f"  Slot {msg.slot} finished; {remaining} worker(s) remaining."
                    )
            # Workers send their pages before their final work message, so any
            # pages still queued once every slot is done belong to this run
            for page in self._mailbox.drain(RESULT):
                self._store(page, summary, bar)
        finally:
            bar.close()

        print(f"\n  Retrieved {summary.retrieved} page(s)")
        for state in summary.failed:
            print(f"  FAILED: slot {state.slot} {state.job}: {state.error}")
        return summary

    def _store(self, page: RetrievedPage, summary: CrawlSummary, bar: tqdm) -> None:
        if self.sink is not None:
            self.sink(page)
        summary.retrieved += 1
        bar.update(1)

    def _handle_work(self, state: PartitionState, summary: CrawlSummary) -> None:
        if state.failed:
            tqdm.write(f"  Slot {state.slot} stopped at {state.job}: {state.error}")
        if state.job.is_exhausted:
            self._mailbox.send(DONE, state)
        elif self._gave_up(state):
            tqdm.write(f"  Slot {state.slot} giving up after {state.retries} failed attempt(s)")
            summary.failed.append(state)
            self._mailbox.send(DONE, state)
        else:
            if state.failed:
                tqdm.write(f"  Restarting slot {state.slot} in {self.backoff:g}s on a new session")
            self._start(state)
