import pytest

TODAY = "2026-03-02"


@pytest.fixture
def raw_payload():
    """Record store rows as returned by ReadOnlyStoreClient.fetch_snapshot_payload."""
    return {
        "bays": [
            {"bay_id": "b3", "bay_number": "3", "location": "South", "status": "Available", "type": None},
            {"bay_id": "b1", "bay_number": 1, "location": "North", "status": "Available", "type": "Regular"},
            {"bay_id": "b2", "bay_number": 2, "location": "North", "status": "Maintenance", "type": None},
            {"bay_id": "b4", "bay_number": 4, "location": "South", "status": "Reserved", "type": None},
            {"bay_id": "b5", "bay_number": 5, "location": "South", "status": "Available", "type": "Visitor"},
        ],
        "permanent_assignments": [
            {"assignment_id": "a1", "bay_id": "b1", "user_id": "u1", "day_of_week": "Monday",
             "available_from": None, "available_to": None},
            {"assignment_id": "a2", "bay_id": "b3", "user_id": "u2", "day_of_week": "All Days",
             "available_from": "2026-03-01", "available_to": "2026-03-03"},
            {"assignment_id": "a3", "bay_id": "b4", "user_id": "u3", "day_of_week": "Monday",
             "available_from": None, "available_to": None},
            {"assignment_id": "a4", "bay_id": "b5", "user_id": "u4", "day_of_week": "Tuesday",
             "available_from": None, "available_to": None},
        ],
        "daily_claims": [
            {"claim_id": "c1", "bay_id": "b2", "user_id": "u5", "claim_date": TODAY, "status": "Active"},
            {"claim_id": "c2", "bay_id": "b4", "user_id": "u3", "claim_date": TODAY, "status": "Cancelled"},
            {"claim_id": "c3", "bay_id": "b5", "user_id": "u5", "claim_date": TODAY, "status": "Active"},
        ],
        "users": [
            {"user_id": "u1", "name": "Alice Ng"},
            {"user_id": "u2", "name": "Ben Ortiz"},
            {"user_id": "u3", "name": "Chloe Park"},
            {"user_id": "u5", "name": "Dev Rao"},
        ],
    }
