import pandas as pd

from epic_app.visual.tables import EPIC_TABLE_COLUMNS, add_ticket_link, apply_column_metadata


def test_ticket_links_with_server():
    df = pd.DataFrame({"key": ["ABC-1", ""], "name": ["a", "b"]})
    out, cfg = add_ticket_link(df, "https://tracker.example.com/")
    assert list(out["Ticket"]) == ["https://tracker.example.com/browse/ABC-1", ""]
    assert "Ticket" in cfg
    assert "Ticket" not in df.columns


def test_ticket_column_without_server_is_plain_key():
    df = pd.DataFrame({"key": ["ABC-1"]})
    out, _cfg = add_ticket_link(df, "")
    assert list(out["Ticket"]) == ["ABC-1"]
    empty, cfg = add_ticket_link(pd.DataFrame(), "https://x")
    assert empty.empty and cfg == {}


def test_column_metadata_keeps_existing_config():
    cfg = apply_column_metadata(EPIC_TABLE_COLUMNS, {"Ticket": "link"})
    assert cfg["Ticket"] == "link"
    assert "total_story_points" in cfg
    assert "unknown" not in apply_column_metadata(["unknown"])
