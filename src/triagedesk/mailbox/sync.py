"""Pull new support emails from Gmail and run them through the pipeline."""

from __future__ import annotations

from triagedesk.errors import UpstreamUnavailableError
from triagedesk.log import get_logger
from triagedesk.mailbox.client import GmailClient
from triagedesk.models import BatchSummary, ItemResult, ItemStatus
from triagedesk.pipeline import Pipeline
from triagedesk.storage import Storage

logger = get_logger(__name__)


class MailboxSync:
    def __init__(
        self,
        client: GmailClient,
        storage: Storage,
        pipeline: Pipeline,
        query: str,
        max_results: int = 50,
    ):
        self.client = client
        self.storage = storage
        self.pipeline = pipeline
        self.query = query
        self.max_results = max_results

    def sync(self) -> BatchSummary:
        """Ingest every matching message that is not stored yet.

        A failure to list messages aborts with UpstreamUnavailableError; a
        failure on one message is recorded and the batch continues.
        """
        try:
            stubs = self.client.list_messages(self.query, self.max_results)
        except Exception as e:
            raise UpstreamUnavailableError(f"Failed to list Gmail messages: {e}") from e

        logger.info("Gmail returned %d messages for %r", len(stubs), self.query)
        summary = BatchSummary()
        for stub in stubs:
            msg_id = stub["id"]

            # Skip if already ingested
            if self.storage.get_email_by_message_id(msg_id) is not None:
                summary.add(ItemResult(msg_id, ItemStatus.SKIPPED, detail="already stored"))
                continue

            try:
                raw_msg = self.client.get_message(msg_id)
                inbound = self.client.parse_message(raw_msg)
                summary.add(self.pipeline.process_new_email(inbound))
            except Exception as e:
                logger.exception("Failed to ingest Gmail message %s", msg_id)
                summary.add(ItemResult(msg_id, ItemStatus.FAILED, detail=str(e)))

        logger.info(
            "Sync finished: %d processed, %d skipped, %d failed",
            summary.processed, summary.skipped, summary.failed,
        )
        return summary
