"""Command execution.

:class:`Program` owns the current model. Events go through :meth:`Program.send`;
commands run on a thread pool and their completion messages land in an inbox that the
UI thread drains with :meth:`Program.pump`. Only the UI thread ever calls
:func:`~harvest_tui.engine.update`.
"""

from __future__ import annotations

import datetime as dt
import queue
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from typing import Callable, Iterable, Optional

from .commands import Command, Quit, Services
from .engine import Effect, init, update
from .log import get_logger
from .messages import Message
from .models import Model

logger = get_logger(__name__)


class Program:
    def __init__(self, model: Model, services: Services, *, notify: Optional[Callable[[], None]] = None,
                 max_workers: int = 4) -> None:
        self._stopping = threading.Event()
        if services.sleep is time.sleep:
            # ticks must not keep the process alive after quitting
            services = replace(services, sleep=self._stopping.wait)
        self.model = model
        self.services = services
        self.notify = notify
        self.quit: Optional[Quit] = None
        self._inbox: "queue.Queue[Message]" = queue.Queue()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="harvest-tui")

    # ------------------------------------------------------------------
    @property
    def finished(self) -> bool:
        return self.quit is not None

    @property
    def farewell(self) -> Optional[str]:
        return self.quit.farewell if self.quit is not None else None

    def start(self) -> None:
        self.model, effects = init(self.model)
        self._dispatch(effects)

    def send(self, message: Message, now: Optional[dt.datetime] = None) -> None:
        if self.finished or self._stopping.is_set():
            return
        self.model, effects = update(self.model, message, now or self.services.clock())
        self._dispatch(effects)

    def pump(self) -> int:
        """Feed every queued completion message through the engine."""

        handled = 0
        while not self.finished:
            try:
                message = self._inbox.get_nowait()
            except queue.Empty:
                break
            self.send(message)
            handled += 1
        return handled

    def shutdown(self) -> None:
        """Stop accepting completions and cancel queued commands.

        Sleeping ticks wake immediately. A request already on the wire cannot be
        interrupted; the interpreter waits for it at exit, at most the client's
        ``request_timeout`` (30 seconds by default).
        """

        self._stopping.set()
        self._executor.shutdown(wait=False, cancel_futures=True)

    # ------------------------------------------------------------------
    def _dispatch(self, effects: Iterable[Effect]) -> None:
        for effect in effects:
            if isinstance(effect, Quit):
                logger.info("Quit requested")
                self.quit = effect
                self._notify()
            elif effect.inline:
                self._deliver(self._execute(effect))
            else:
                future = self._executor.submit(self._execute, effect)
                future.add_done_callback(self._on_done)

    def _execute(self, command: Command) -> Message:
        logger.debug("Running %r", command)
        try:
            return command.run(self.services)
        except Exception as exc:
            logger.exception("Command %s failed unexpectedly", type(command).__name__)
            return command.failed(exc, self.services)

    def _on_done(self, future: "Future[Message]") -> None:
        if future.cancelled() or self._stopping.is_set():
            return
        self._deliver(future.result())

    def _deliver(self, message: Message) -> None:
        self._inbox.put(message)
        self._notify()

    def _notify(self) -> None:
        notify = self.notify
        if notify is not None and not self._stopping.is_set():
            notify()


__all__ = ["Program"]
