"""
End-to-end RSVP journeys through the HTTP API.

alice@example.com and carol@example.com are on the guest list in the test
rules; bob@example.com is not.
"""

import pytest

from src.components.rsvp import ALREADY_SUBMITTED, NO_RSVP, NOT_INVITED


@pytest.fixture
def alice(auth_headers):
    return auth_headers("alice@example.com")


@pytest.fixture
def bob(auth_headers):
    return auth_headers("bob@example.com")


def submit(client, headers, **fields):
    payload = {"attendance": "yes", "meal_preference": "vegetarian"}
    payload.update(fields)
    return client.post("/api/rsvp", json=payload, headers=headers)


def test_invited_guest_submits_once(client, alice):
    response = submit(client, alice, allergies="peanuts")

    assert response.status_code == 201
    rsvp = response.json()
    assert rsvp["attendance"] == "yes"
    assert rsvp["meal_preference"] == "vegetarian"
    assert rsvp["allergies"] == "peanuts"
    assert rsvp["additional_notes"] == ""

    me = client.get("/api/auth/me", headers=alice).json()
    assert me["user"]["has_rsvped"] is True
    assert me["user"]["rsvp_id"] == rsvp["id"]
    assert me["rsvp"]["id"] == rsvp["id"]

    again = submit(client, alice, attendance="no")
    assert again.status_code == 409
    assert again.json()["detail"]["message"] == ALREADY_SUBMITTED
    assert client.get("/api/rsvp", headers=alice).json()["attendance"] == "yes"


def test_uninvited_guest_forbidden(client, bob):
    response = submit(client, bob)

    assert response.status_code == 403
    assert response.json()["detail"]["message"] == NOT_INVITED
    assert client.get("/api/auth/me", headers=bob).json()["user"]["has_rsvped"] is False


def test_uninvited_check_precedes_validation(client, bob):
    # Invalid payload, but the invite gate answers first
    response = submit(client, bob, meal_preference="")

    assert response.status_code == 403


def test_submit_requires_auth(client):
    assert client.post("/api/rsvp", json={"attendance": "no"}).status_code == 401


@pytest.mark.parametrize("attendance", ["YES", True, "Yes"])
def test_legacy_attendance_values_accepted(client, alice, attendance):
    response = submit(client, alice, attendance=attendance)

    assert response.status_code == 201
    assert response.json()["attendance"] == "yes"


def test_unknown_attendance_rejected(client, alice):
    assert submit(client, alice, attendance="perhaps").status_code == 422


def test_meal_required_when_attending(client, alice):
    response = submit(client, alice, meal_preference="  ")

    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "meal_preference"


def test_declining_needs_no_meal(client, alice):
    response = client.post("/api/rsvp", json={"attendance": "no"}, headers=alice)

    assert response.status_code == 201
    assert response.json()["meal_preference"] == ""


def test_overlong_notes_rejected(client, alice):
    response = submit(client, alice, additional_notes="x" * 501)

    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "additional_notes"


def test_get_without_rsvp_is_404(client, alice):
    response = client.get("/api/rsvp", headers=alice)

    assert response.status_code == 404
    assert response.json()["detail"]["message"] == NO_RSVP


# --- Edit ---


def test_edit_changes_only_given_fields(client, alice):
    original = submit(client, alice, allergies="peanuts").json()

    response = client.patch("/api/rsvp", json={"attendance": "maybe"}, headers=alice)

    assert response.status_code == 200
    edited = response.json()
    assert edited["id"] == original["id"]
    assert edited["attendance"] == "maybe"
    assert edited["meal_preference"] == "vegetarian"
    assert edited["allergies"] == "peanuts"
    assert edited["created_at"] == original["created_at"]


def test_edit_validates_merged_record(client, alice):
    submit(client, alice)

    response = client.patch("/api/rsvp", json={"meal_preference": ""}, headers=alice)

    assert response.status_code == 422
    assert client.get("/api/rsvp", headers=alice).json()["meal_preference"] == "vegetarian"


def test_edit_to_declined_allows_clearing_meal(client, alice):
    submit(client, alice)

    response = client.patch(
        "/api/rsvp", json={"attendance": "no", "meal_preference": ""}, headers=alice
    )

    assert response.status_code == 200
    assert response.json()["meal_preference"] == ""


def test_empty_edit_returns_rsvp_unchanged(client, alice):
    original = submit(client, alice).json()

    response = client.patch("/api/rsvp", json={}, headers=alice)

    assert response.status_code == 200
    assert response.json() == original


def test_edit_without_rsvp_is_404(client, alice):
    response = client.patch("/api/rsvp", json={"attendance": "no"}, headers=alice)

    assert response.status_code == 404
