from pymongo.errors import ServerSelectionTimeoutError

from career_connect.api.routes import profile_routes
from career_connect.db.database import get_db_session
from career_connect.models import User

URL = "/api/profiles"


def _save_profile(client, who, fields):
    response = client.put(f"{URL}/me", json={"fields": fields}, headers=who.headers)
    assert response.status_code == 200
    return response


def test_browse_lists_students_by_name_with_fields(client, make_participant, student, job_giver, mentor):
    other = make_participant("Ana Analyst", "student")
    _save_profile(client, student, {"university": "TU Munich", "skills": ["python", "sql"]})

    response = client.get(URL, params={"role": "student"}, headers=job_giver.headers)

    assert response.status_code == 200
    listed = response.json()
    assert [p["participant"]["full_name"] for p in listed] == ["Ana Analyst", "Sara Student"]
    assert [p["participant"]["id"] for p in listed] == [other.id, student.id]
    assert {p["participant"]["role"] for p in listed} == {"student"}
    assert listed[0]["fields"] == {}
    assert listed[1]["fields"] == {"university": "TU Munich", "skills": ["python", "sql"]}


def test_browse_defaults_to_students(client, student, mentor):
    listed = client.get(URL, headers=mentor.headers).json()

    assert [p["participant"]["id"] for p in listed] == [student.id]


def test_browse_includes_people_already_talked_to(client, student, job_giver):
    client.post("/api/conversations", json={"participant_id": student.id}, headers=job_giver.headers)

    candidates = client.get("/api/conversations/candidates", headers=job_giver.headers).json()
    listed = client.get(URL, params={"role": "student"}, headers=job_giver.headers).json()

    assert student.id not in [c["id"] for c in candidates]
    assert [p["participant"]["id"] for p in listed] == [student.id]


def test_browse_filters_by_role_and_skips_inactive(client, make_participant, student, job_giver):
    gone = make_participant("Gone Employer", "job_giver")
    with get_db_session() as db:
        db.get(User, gone.id).is_active = False
    _save_profile(client, job_giver, {"company_name": "Acme Corp"})

    listed = client.get(URL, params={"role": "job_giver"}, headers=student.headers).json()

    assert [p["participant"]["id"] for p in listed] == [job_giver.id]
    assert listed[0]["fields"] == {"company_name": "Acme Corp"}


def test_browse_rejects_unknown_role(client, student):
    assert client.get(URL, params={"role": "admin"}, headers=student.headers).status_code == 422


def test_profiles_require_authentication(client, student):
    assert client.get(URL).status_code == 401
    assert client.get(f"{URL}/{student.id}").status_code == 401
    assert client.put(f"{URL}/me", json={"fields": {}}).status_code == 401


def test_get_single_profile(client, student, job_giver):
    _save_profile(client, job_giver, {"company_name": "Acme Corp"})

    found = client.get(f"{URL}/{job_giver.id}", headers=student.headers)
    missing = client.get(f"{URL}/424242", headers=student.headers)

    assert found.status_code == 200
    assert found.json()["participant"]["full_name"] == "Jon Employer"
    assert found.json()["fields"] == {"company_name": "Acme Corp"}
    assert missing.status_code == 403


def test_profile_store_outage_is_503(client, monkeypatch, job_giver):
    class UnreachableProfiles:
        def browse(self, role):
            raise ServerSelectionTimeoutError("no servers")

    monkeypatch.setattr(profile_routes, "get_profile_service", lambda: UnreachableProfiles())

    response = client.get(URL, params={"role": "student"}, headers=job_giver.headers)

    assert response.status_code == 503
    assert response.json()["error"] == "transient_io"
