"""Tests for the knowledge base lookup and YAML loading."""

from triagedesk.ai.knowledge import DEFAULT_KNOWLEDGE_BASE, KnowledgeBase, load_knowledge_base
from triagedesk.ai.prompts import build_knowledge_prompt


def test_default_categories():
    assert set(DEFAULT_KNOWLEDGE_BASE) == {
        "billing", "technical", "account-access", "integration", "pricing", "infrastructure",
    }


def test_lookup_matches_subject_and_body():
    kb = KnowledgeBase()
    matched = kb.lookup("Password reset", "Our API webhook is failing")
    assert {"account-access", "integration", "technical"} <= set(matched)
    assert "billing" not in matched


def test_lookup_uses_word_boundaries():
    kb = KnowledgeBase()
    assert "infrastructure" not in kb.lookup("Download", "the downloads page")


def test_missing_file_returns_defaults(tmp_path):
    kb = load_knowledge_base(str(tmp_path / "missing.yaml"))
    assert set(kb.entries) == set(DEFAULT_KNOWLEDGE_BASE)


def test_yaml_overrides_and_extends(tmp_path):
    path = tmp_path / "kb.yaml"
    path.write_text(
        "billing:\n"
        "  keywords: [invoice]\n"
        "  content: Invoices are emailed on the 1st.\n"
        "shipping:\n"
        "  keywords: [delivery, tracking]\n"
        "  content: Orders ship within 2 days.\n"
        "broken:\n"
        "  keywords: [x]\n"
    )
    kb = load_knowledge_base(str(path))

    assert kb.entries["billing"].content == "Invoices are emailed on the 1st."
    assert "broken" not in kb.entries
    assert kb.lookup("Where is my delivery", "") == {"shipping": "Orders ship within 2 days."}


def test_build_knowledge_prompt():
    assert build_knowledge_prompt({}) == ""
    text = build_knowledge_prompt({"pricing": "Plans are monthly."})
    assert "[pricing]" in text
    assert "Plans are monthly." in text
