"""Per-email processing: classify, extract, tag, persist, draft a reply."""

from __future__ import annotations

import threading
from contextlib import contextmanager

from triagedesk.classifier import Classifier
from triagedesk.errors import DuplicateEmailError, NotFoundError, TriageError
from triagedesk.log import get_logger
from triagedesk.models import BatchSummary, Email, InboundEmail, ItemResult, ItemStatus
from triagedesk.storage import Storage
from triagedesk.tags import derive_tags

logger = get_logger(__name__)


class EmailLocks:
    """In-process mutex registry keyed by email id.

    An entry lives only while some thread holds or waits on it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        # email id -> [lock, holders + waiters]
        self._locks: dict[str, list] = {}

    @contextmanager
    def hold(self, email_id: str):
        with self._guard:
            entry = self._locks.setdefault(email_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[email_id]


# Shared by every Pipeline in the process so concurrent requests serialize.
_EMAIL_LOCKS = EmailLocks()


class Pipeline:
    def __init__(
        self,
        storage: Storage,
        classifier: Classifier,
        locks: EmailLocks | None = None,
    ):
        self.storage = storage
        self.classifier = classifier
        self.locks = locks or _EMAIL_LOCKS

    @property
    def model_name(self) -> str:
        return self.classifier.model_name

    def _draft_and_store(self, email: Email) -> str:
        reply = self.classifier.draft_reply(
            email.subject, email.body, email.sentiment, email.extracted_info
        )
        self.storage.create_response(
            email.id,
            content=reply.content,
            model=self.model_name,
            confidence=reply.confidence_percent,
        )
        return reply.content

    def _classify(self, subject: str, body: str):
        sentiment = self.classifier.analyze_sentiment(body)
        priority = self.classifier.analyze_priority(subject, body)
        info = self.classifier.extract_info(body)
        tags = derive_tags(subject, body, info)
        return sentiment, priority, info, tags

    def process_new_email(self, raw: InboundEmail) -> ItemResult:
        """Classify and store a newly seen email, then draft its first reply.

        Emails whose message_id is already stored are skipped before any AI
        call. A unique-constraint hit at insert time (a concurrent ingest of
        the same message) is also reported as skipped.
        """
        if self.storage.get_email_by_message_id(raw.message_id) is not None:
            logger.info("Skipping known email %s", raw.message_id)
            return ItemResult(raw.message_id, ItemStatus.SKIPPED, detail="already stored")

        sentiment, priority, info, tags = self._classify(raw.subject, raw.body)

        try:
            email = self.storage.create_email(
                raw,
                sentiment=sentiment.sentiment,
                priority=priority.priority,
                extracted_info=info,
                tags=tags,
                is_processed=True,
            )
        except DuplicateEmailError:
            logger.info("Skipping duplicate email %s", raw.message_id)
            return ItemResult(raw.message_id, ItemStatus.SKIPPED, detail="already stored")

        try:
            with self.locks.hold(email.id):
                self._draft_and_store(email)
        except TriageError as e:
            logger.error("Stored email %s but could not save its response: %s", email.id, e)
            return ItemResult(
                raw.message_id, ItemStatus.PROCESSED, email.id, detail="response not saved"
            )

        logger.info("Processed email: %s (%s/%s)", email.subject, email.priority, email.sentiment)
        return ItemResult(raw.message_id, ItemStatus.PROCESSED, email.id)

    def generate_new_response(self, email_id: str) -> str:
        """Append a freshly drafted response for an existing email and return its content."""
        with self.locks.hold(email_id):
            email = self.storage.get_email(email_id)
            if email is None:
                raise NotFoundError(f"Email not found: {email_id}")
            return self._draft_and_store(email)

    def respond_if_missing(self, email_id: str) -> bool:
        """Draft a response only when the email has none. Returns True if one was created."""
        with self.locks.hold(email_id):
            email = self.storage.get_email(email_id)
            if email is None:
                raise NotFoundError(f"Email not found: {email_id}")
            if self.storage.get_latest_response(email_id) is not None:
                return False
            self._draft_and_store(email)
            return True

    def process_urgent(self, limit: int = 5) -> BatchSummary:
        """Draft responses for up to `limit` unresolved urgent emails that have none."""
        summary = BatchSummary()
        for email in self.storage.urgent_emails_without_response(limit):
            try:
                if self.respond_if_missing(email.id):
                    summary.add(ItemResult(email.id, ItemStatus.PROCESSED, email.id))
                else:
                    summary.add(ItemResult(email.id, ItemStatus.SKIPPED, email.id, "already answered"))
            except Exception as e:
                logger.exception("Failed to process urgent email %s", email.id)
                summary.add(ItemResult(email.id, ItemStatus.FAILED, email.id, str(e)))
        return summary

    def reprocess_email(self, email_id: str) -> ItemResult:
        """Classify a stored but unprocessed email and draft a response if it has none."""
        with self.locks.hold(email_id):
            email = self.storage.get_email(email_id)
            if email is None:
                raise NotFoundError(f"Email not found: {email_id}")
            if email.is_processed:
                return ItemResult(email_id, ItemStatus.SKIPPED, email_id, "already processed")

            sentiment, priority, info, tags = self._classify(email.subject, email.body)
            email = self.storage.update_email_classification(
                email_id,
                sentiment=sentiment.sentiment,
                priority=priority.priority,
                extracted_info=info,
                tags=tags,
                is_processed=True,
            )
            if self.storage.get_latest_response(email_id) is None:
                self._draft_and_store(email)
        return ItemResult(email_id, ItemStatus.PROCESSED, email_id)

    def process_pending(self, limit: int = 50) -> BatchSummary:
        """Run reprocess_email over unprocessed emails, urgent ones first."""
        summary = BatchSummary()
        for email in self.storage.get_unprocessed_emails(limit):
            try:
                summary.add(self.reprocess_email(email.id))
            except Exception as e:
                logger.exception("Failed to process pending email %s", email.id)
                summary.add(ItemResult(email.id, ItemStatus.FAILED, email.id, str(e)))
        return summary
