from epic_app.core.columns import normalize_header, resolve_column, resolve_columns


def test_normalize_header_strips_case_space_underscore():
    assert normalize_header(" Story_Points ") == "storypoints"
    assert normalize_header(None) == ""


def test_exact_match_beats_earlier_substring():
    headers = ["Parent Link", "Parent"]
    assert resolve_column(headers, ["Parent"]) == "Parent"


def test_substring_match_when_no_exact():
    headers = ["Summary", "Custom field (Story Points)"]
    assert resolve_column(headers, ["Story Points"]) == "Custom field (Story Points)"


def test_candidate_order_wins_over_header_order():
    headers = ["Issue key", "Key"]
    assert resolve_column(headers, ["Issue key", "Key"]) == "Issue key"
    assert resolve_column(headers, ["Key", "Issue key"]) == "Key"


def test_no_match_returns_none():
    assert resolve_column(["Summary"], ["Sprint"]) is None
    assert resolve_column([], ["Key"]) is None


def test_resolution_is_deterministic():
    headers = ["Epic Link", "Epic Name", "Key"]
    first = resolve_column(headers, ["Epic"])
    assert all(resolve_column(headers, ["Epic"]) == first for _ in range(5))


def test_resolve_columns_ignores_unknown_fields():
    cols = resolve_columns(["Key", "Status"], {"key": ["Key"], "status": ["Status"], "bogus": ["X"]})
    assert cols.key == "Key"
    assert cols.status == "Status"
    assert cols.sprint is None
    assert "bogus" not in cols.as_dict()
