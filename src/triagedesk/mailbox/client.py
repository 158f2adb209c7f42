"""Gmail API wrapper: list, fetch and parse support messages."""

from __future__ import annotations

import base64
from datetime import datetime, timezone

from dateutil import parser as date_parser

from triagedesk.models import InboundEmail


class GmailClient:
    """Wraps the Gmail API service and turns raw messages into InboundEmail."""

    def __init__(self, service):
        self.service = service

    def _messages(self):
        return self.service.users().messages()

    def list_messages(self, query: str, max_results: int = 50) -> list[dict]:
        """Stubs (id, threadId) of up to max_results messages matching the search query."""
        result = self._messages().list(userId="me", q=query, maxResults=max_results).execute()
        return result.get("messages", [])

    def get_message(self, message_id: str, fmt: str = "full") -> dict:
        return self._messages().get(userId="me", id=message_id, format=fmt).execute()

    def parse_message(self, raw_msg: dict) -> InboundEmail:
        """Parse a raw Gmail API message into an InboundEmail."""
        payload = raw_msg.get("payload", {})

        header_map: dict[str, str] = {}
        for h in payload.get("headers", []):
            key = h.get("name", "").lower()
            # Keep first occurrence
            if key not in header_map:
                header_map[key] = h.get("value", "")

        return InboundEmail(
            message_id=raw_msg["id"],
            subject=header_map.get("subject", ""),
            sender=header_map.get("from", ""),
            body=self._find_text(payload) or raw_msg.get("snippet", ""),
            received_at=self._received_at(raw_msg, header_map.get("date")),
        )

    def _find_text(self, part: dict) -> str:
        """Depth-first search for the first text/plain body."""
        sub_parts = part.get("parts", [])
        if sub_parts:
            for sub in sub_parts:
                text = self._find_text(sub)
                if text:
                    return text
            return ""

        mime_type = part.get("mimeType", "text/plain")
        body_data = part.get("body", {}).get("data", "")
        if mime_type != "text/plain" or not body_data:
            return ""
        try:
            return base64.urlsafe_b64decode(body_data).decode("utf-8", errors="replace")
        except (ValueError, TypeError):
            return ""

    @staticmethod
    def _received_at(raw_msg: dict, date_header: str | None) -> datetime:
        internal = raw_msg.get("internalDate")
        if internal:
            return datetime.fromtimestamp(int(internal) / 1000, tz=timezone.utc)
        if date_header:
            try:
                return date_parser.parse(date_header)
            except (ValueError, OverflowError):
                pass
        return datetime.now(timezone.utc)
