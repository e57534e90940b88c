"""
Background certificate delivery

Each email dispatch scheduled after a response is tracked by a DeliveryTask
handle (pending -> running -> completed | failed) so it can be awaited and
inspected once the HTTP response has gone out.
"""

import asyncio
import logging
import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from ..schemas import DeliveryOutcome

logger = logging.getLogger(__name__)

Sender = Callable[[str, bytes, bytes], Awaitable[DeliveryOutcome]]

PENDING = "pending"
RUNNING = "running"
COMPLETED = "completed"
FAILED = "failed"


class DeliveryTask:
    def __init__(self, recipient: str, pdf_bytes: bytes, preview_bytes: bytes, sender: Sender):
        self.id = uuid.uuid4().hex
        self.recipient = recipient
        self.status = PENDING
        self.outcome: Optional[DeliveryOutcome] = None
        self.created_at = datetime.now(timezone.utc)
        self.finished_at: Optional[datetime] = None
        self._pdf_bytes = pdf_bytes
        self._preview_bytes = preview_bytes
        self._sender = sender
        self._done: Optional[asyncio.Event] = None

    @property
    def done(self) -> bool:
        return self.status in (COMPLETED, FAILED)

    def _event(self) -> asyncio.Event:
        # Created lazily so the event binds to the loop that runs the task
        if self._done is None:
            self._done = asyncio.Event()
        return self._done

    async def run(self) -> DeliveryOutcome:
        """Send the email; exceptions from the sender become a failed outcome."""
        self._event()
        self.status = RUNNING
        try:
            outcome = await self._sender(self.recipient, self._pdf_bytes, self._preview_bytes)
        except asyncio.CancelledError:
            logger.warning(
                f"⚠️ Certificate email to {self.recipient} cancelled",
                extra={"event": "delivery_failed", "task_id": self.id, "recipient": self.recipient},
            )
            self._finish(
                DeliveryOutcome(
                    success=False,
                    recipient=self.recipient,
                    timestamp=datetime.now(timezone.utc),
                    error="cancelled",
                    note="Certificate was generated successfully",
                )
            )
            raise
        except Exception as e:
            logger.error(
                f"❌ Email sending failed: {e}",
                exc_info=True,
                extra={"event": "delivery_failed", "task_id": self.id, "recipient": self.recipient},
            )
            outcome = DeliveryOutcome(
                success=False,
                recipient=self.recipient,
                timestamp=datetime.now(timezone.utc),
                error=str(e) or type(e).__name__,
                note="Certificate was generated successfully",
            )

        self._finish(outcome)

        if outcome.success:
            logger.info(
                f"✅ Certificate email sent to: {self.recipient}",
                extra={"event": "delivery_completed", "task_id": self.id, "recipient": self.recipient},
            )
        else:
            logger.warning(
                f"⚠️ Certificate email not delivered to {self.recipient}: {outcome.error}",
                extra={
                    "event": "delivery_failed",
                    "task_id": self.id,
                    "recipient": self.recipient,
                    "error": outcome.error,
                },
            )
        return outcome

    def _finish(self, outcome: DeliveryOutcome) -> None:
        self.outcome = outcome
        self.status = COMPLETED if outcome.success else FAILED
        self.finished_at = datetime.now(timezone.utc)
        # Release the attachment buffers once sent
        self._pdf_bytes = b""
        self._preview_bytes = b""
        self._event().set()

    async def wait(self, timeout: Optional[float] = None) -> Optional[DeliveryOutcome]:
        if not self.done:
            await asyncio.wait_for(self._event().wait(), timeout=timeout)
        return self.outcome

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "recipient": self.recipient,
            "status": self.status,
            "createdAt": self.created_at.isoformat(),
            "finishedAt": self.finished_at.isoformat() if self.finished_at else None,
            "outcome": self.outcome.to_dict() if self.outcome else None,
        }


class DeliveryRegistry:
    """Keeps the most recent delivery handles, oldest evicted first."""

    def __init__(self, max_size: int = 100):
        self.max_size = max_size
        self._tasks: "OrderedDict[str, DeliveryTask]" = OrderedDict()

    def create(
        self, recipient: str, pdf_bytes: bytes, preview_bytes: bytes, sender: Sender
    ) -> DeliveryTask:
        task = DeliveryTask(recipient, pdf_bytes, preview_bytes, sender)
        self._tasks[task.id] = task
        while len(self._tasks) > self.max_size:
            self._tasks.popitem(last=False)
        return task

    def get(self, task_id: str) -> Optional[DeliveryTask]:
        return self._tasks.get(task_id)

    def latest(self) -> Optional[DeliveryTask]:
        if not self._tasks:
            return None
        return next(reversed(self._tasks.values()))

    def all(self) -> list[DeliveryTask]:
        return list(self._tasks.values())

    async def wait_all(self, timeout: Optional[float] = None) -> list[Optional[DeliveryOutcome]]:
        pending = [task.wait() for task in self._tasks.values() if not task.done]
        if pending:
            await asyncio.wait_for(asyncio.gather(*pending), timeout=timeout)
        return [task.outcome for task in self._tasks.values()]

    def __len__(self) -> int:
        return len(self._tasks)
