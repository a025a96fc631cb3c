from conftest import ENGLISH_GRAMMAR
from edumynt.infrastructure.queries import enroll_user_in_course


def test_dashboard_requires_session(client):
    r = client.get("/dashboard?tab=courses", follow_redirects=False)
    assert r.status_code == 307
    assert r.headers["location"] == "/auth/signin?redirectTo=/dashboard"


def test_home_tab_by_default(client, seeded, auth_headers):
    r = client.get("/dashboard", headers=auth_headers)
    assert r.status_code == 200
    data = r.json()
    assert data["tab"] == "home"
    assert data["home"]["greeting"] == "Welcome back, Test Student!"
    assert data["home"]["continue_learning"] == []
    assert data["home"]["stats"] == {"enrolled": 0, "in_progress": 0, "completed": 0, "average_progress": 0.0}
    assert data["courses"] is None
    assert [t["id"] for t in data["tabs"]] == ["home", "courses", "tests", "discuss", "profile"]


def test_unknown_tab_falls_back_to_home(client, seeded, auth_headers):
    r = client.get("/dashboard?tab=leaderboard", headers=auth_headers)
    assert r.json()["tab"] == "home"


def test_courses_tab_marks_enrollments(client, seeded, auth_headers, student):
    assert enroll_user_in_course(seeded, student.user.id, ENGLISH_GRAMMAR)

    r = client.get(f"/dashboard?tab=courses&course={ENGLISH_GRAMMAR}", headers=auth_headers)
    data = r.json()
    assert data["tab"] == "courses"
    assert data["courses"]["focus_course_id"] == ENGLISH_GRAMMAR

    sections = {s["id"]: s for s in data["courses"]["sections"]}
    assert list(sections) == ["all", "enrolled", "English", "Psychology", "Mathematics"]
    assert len(sections["all"]["courses"]) == 4
    assert [c["course"]["id"] for c in sections["enrolled"]["courses"]] == [ENGLISH_GRAMMAR]
    assert sections["Mathematics"]["label"] == "Math"
    assert all(not c["is_enrolled"] for c in sections["Psychology"]["courses"])


def test_placeholder_tabs(client, seeded, auth_headers):
    tests = client.get("/dashboard?tab=tests", headers=auth_headers).json()["tests"]
    assert tests["title"] == "Practice Tests"
    assert tests["items"]

    discuss = client.get("/dashboard?tab=discuss", headers=auth_headers).json()["discuss"]
    assert discuss["title"] == "Discussions"


def test_profile_tab(client, seeded, auth_headers, student):
    enroll_user_in_course(seeded, student.user.id, ENGLISH_GRAMMAR)
    profile = client.get("/dashboard?tab=profile", headers=auth_headers).json()["profile"]
    assert profile["user"]["email"] == "student@example.com"
    assert profile["courses_enrolled"] == 1
    assert profile["sign_out_url"] == "/api/auth/signout"


def test_sidebar_marks_active_tab(client, seeded, auth_headers):
    data = client.get("/dashboard?tab=discuss", headers=auth_headers).json()
    active = [item["id"] for section in data["sidebar"] for item in section["items"] if item["active"]]
    assert active == ["discussion"]


def test_settings_panel_anonymous(client):
    r = client.get("/settings")
    assert r.status_code == 200
    data = r.json()
    assert data["theme_options"] == ["light", "dark", "system"]
    assert data["theme"] == "system"
    assert [t["description"] for t in data["notifications"]] == [
        "Get notified about new lessons", "Weekly progress updates",
    ]
    assert [link["label"] for link in data["account_links"]] == [
        "Profile Settings", "Privacy & Security", "Help & Support",
    ]
    assert data["signed_in"] is False
    assert data["sign_out_url"] is None


def test_settings_panel_signed_in(client, auth_headers):
    data = client.get("/settings?theme=dark", headers=auth_headers).json()
    assert data["theme"] == "dark"
    assert data["signed_in"] is True
