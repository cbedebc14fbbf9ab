"""Fan-in of upload results into a single manifest."""

import queue
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Union

from manifest_upload.uploader import UploadResult


@dataclass(frozen=True)
class UploadFailure:
    """An upload task that did not produce a digest."""

    relative_path: str
    error: BaseException


Outcome = Union[UploadResult, UploadFailure]


class ManifestAggregator:
    """
    Collects one outcome per dispatched upload into the manifest mapping.

    Upload tasks only ever call ``report``, which puts a value on a queue.
    The mapping itself belongs to whichever single thread calls ``drain`` and
    ``collect``; producers never see it or a lock around it.

    The first failure consumed sets ``cancelled`` so running tasks can stop
    early, and is re-raised to the consumer. ``on_result``, if given, is called
    on the consuming thread for each result as it enters the manifest.
    """

    def __init__(self, on_result: Optional[Callable[[UploadResult], None]] = None):
        self._on_result = on_result
        self._outcomes: "queue.Queue[Outcome]" = queue.Queue()
        self._manifest: Dict[str, str] = {}
        self._cancel = threading.Event()
        self._dispatched = 0
        self._received = 0

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def pending(self) -> int:
        """Dispatched tasks whose outcome has not been consumed yet."""
        return self._dispatched - self._received

    def cancel(self) -> None:
        self._cancel.set()

    def dispatched(self) -> None:
        """Record that one more task has been submitted."""
        self._dispatched += 1

    def report(self, outcome: Outcome) -> None:
        """Called from upload tasks, once each. Thread-safe."""
        self._outcomes.put(outcome)

    def drain(self) -> None:
        """Consume every outcome that is already available without blocking."""
        while True:
            try:
                outcome = self._outcomes.get_nowait()
            except queue.Empty:
                return
            self._consume(outcome)

    def collect(self, timeout: Optional[float] = None) -> Dict[str, str]:
        """
        Block until every dispatched task has reported, then return the manifest.

        Args:
            timeout: Maximum seconds to wait for each outcome; None waits forever

        Returns:
            A copy of the finished manifest

        Raises:
            queue.Empty: If ``timeout`` elapsed waiting for an outcome
            Exception: The error carried by the first failed upload
        """
        while self.pending > 0:
            self._consume(self._outcomes.get(timeout=timeout))
        return dict(self._manifest)

    def _consume(self, outcome: Outcome) -> None:
        self._received += 1

        if isinstance(outcome, UploadFailure):
            self.cancel()
            raise outcome.error

        if outcome.relative_path in self._manifest:
            raise RuntimeError(f"Duplicate manifest entry for {outcome.relative_path}")
        self._manifest[outcome.relative_path] = outcome.digest
        if self._on_result is not None:
            self._on_result(outcome)
