"""Explicit construction of the storage/classifier/pipeline graph."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass

from triagedesk import ai
from triagedesk.ai.knowledge import load_knowledge_base
from triagedesk.analytics import backfill_analytics, update_daily_analytics
from triagedesk.classifier import Classifier
from triagedesk.config import Config, load_config
from triagedesk.database import get_db, init_db
from triagedesk.log import get_logger
from triagedesk.mailbox.auth import get_gmail_service
from triagedesk.mailbox.client import GmailClient
from triagedesk.mailbox.sync import MailboxSync
from triagedesk.models import BatchSummary
from triagedesk.pipeline import Pipeline
from triagedesk.seed import bundled_rows, load_csv_rows, quick_seed, seed_emails
from triagedesk.storage import Storage

logger = get_logger(__name__)


def build_classifier(config: Config) -> Classifier:
    provider, model_name = ai.get_provider(
        config.ai.model_spec, config=config.ai.to_provider_dict()
    )
    return Classifier(
        provider,
        model_name,
        knowledge_base=load_knowledge_base(config.pipeline.knowledge_base_file),
        max_body_chars=config.ai.max_body_chars,
    )


@dataclass
class Services:
    config: Config
    storage: Storage
    pipeline: Pipeline

    @classmethod
    def build(cls, config: Config, conn: sqlite3.Connection) -> "Services":
        storage = Storage(conn)
        return cls(config=config, storage=storage, pipeline=Pipeline(storage, build_classifier(config)))

    def sync_mailbox(self) -> BatchSummary:
        """Pull new support mail from Gmail, then refresh today's analytics."""
        client = GmailClient(get_gmail_service(self.config))
        syncer = MailboxSync(
            client,
            self.storage,
            self.pipeline,
            query=self.config.gmail.default_query,
            max_results=self.config.gmail.max_results,
        )
        summary = syncer.sync()
        update_daily_analytics(self.storage)
        return summary

    def seed(self, csv_path: str | None = None, quick: bool = False) -> BatchSummary:
        """Load CSV or bundled sample rows, then backfill the analytics window."""
        csv_path = csv_path or self.config.pipeline.seed_csv_path
        rows = load_csv_rows(csv_path) if csv_path else bundled_rows()
        if quick:
            summary = quick_seed(self.storage, rows)
        else:
            summary = seed_emails(self.pipeline, self.storage, rows)
        backfill_analytics(self.storage, self.config.pipeline.analytics_backfill_days)
        return summary

    def process_urgent(self, limit: int | None = None) -> BatchSummary:
        return self.pipeline.process_urgent(limit or self.config.pipeline.urgent_batch_limit)

    def process_pending(self, limit: int | None = None) -> BatchSummary:
        summary = self.pipeline.process_pending(limit or self.config.pipeline.default_list_limit)
        update_daily_analytics(self.storage)
        return summary


@contextmanager
def open_services(config: Config | None = None):
    """Open a database connection and yield a Services graph bound to it."""
    if config is None:
        config = load_config()
    conn = get_db(config)
    try:
        init_db(conn)
        yield Services.build(config, conn)
    finally:
        conn.close()
