from conftest import ENGLISH_GRAMMAR, ENGLISH_LITERATURE
from edumynt.infrastructure.models import Course


def test_home_lists_three_featured_courses(client, seeded):
    r = client.get("/")
    assert r.status_code == 200
    assert len(r.json()["featured_courses"]) == 3


def test_catalog_requires_session(client, seeded):
    r = client.get("/courses", follow_redirects=False)
    assert r.status_code == 307
    assert r.headers["location"] == "/auth/signin?redirectTo=/courses"


def test_catalog_groups_by_subject(client, seeded, auth_headers):
    r = client.get("/courses", headers=auth_headers)
    assert r.status_code == 200
    data = r.json()
    assert data["total"] == 4
    by_subject = {s["subject"]: len(s["courses"]) for s in data["sections"]}
    assert by_subject == {"English": 2, "Psychology": 1, "Mathematics": 1}


def test_catalog_hides_unpublished(client, seeded, auth_headers):
    seeded.add(Course(title="Draft", subject="English", is_published=False))
    seeded.commit()
    r = client.get("/courses", headers=auth_headers, params={"subject": "English"})
    titles = [c["title"] for c in r.json()["sections"][0]["courses"]]
    assert "Draft" not in titles
    assert len(titles) == 2


def test_course_detail_totals(client, seeded, auth_headers):
    r = client.get(f"/course/{ENGLISH_GRAMMAR}", headers=auth_headers)
    assert r.status_code == 200
    data = r.json()
    assert data["total_lessons"] == 5
    assert data["preview_lessons"] == 2
    assert data["estimated_duration"] == 25 + 30 + 35 + 40 + 35
    assert [lesson["order_index"] for lesson in data["lessons"]] == [1, 2, 3, 4, 5]
    assert data["is_enrolled"] is False
    assert data["start_learning_url"] == f"/course/{ENGLISH_GRAMMAR}/enroll"
    assert "content" not in data["lessons"][0]


def test_course_not_found(client, seeded, auth_headers):
    r = client.get("/course/does-not-exist", headers=auth_headers)
    assert r.status_code == 404
    assert r.json()["detail"] == "course not found"


def test_course_preview_is_public(client, seeded):
    r = client.get(f"/course/{ENGLISH_LITERATURE}/preview")
    assert r.status_code == 200
    data = r.json()
    assert data["course"]["price"] == 299
    assert data["course"]["is_free"] is False
    assert [lesson["title"] for lesson in data["lessons"]] == ["Introduction to English Literature"]


def test_enroll_then_duplicate(client, seeded, auth_headers):
    r = client.post(f"/course/{ENGLISH_GRAMMAR}/enroll", headers=auth_headers)
    assert r.status_code == 200
    data = r.json()
    assert data["success"] is True
    assert data["redirect_to"] == f"/dashboard?tab=courses&course={ENGLISH_GRAMMAR}"
    assert data["first_lesson_url"].startswith("/lesson/")

    r = client.post(f"/course/{ENGLISH_GRAMMAR}/enroll", headers=auth_headers)
    assert r.status_code == 409
    assert r.json()["success"] is False

    r = client.get(f"/course/{ENGLISH_GRAMMAR}", headers=auth_headers)
    assert r.json()["is_enrolled"] is True
    assert r.json()["start_learning_url"] == f"/dashboard?tab=courses&course={ENGLISH_GRAMMAR}"


def test_enroll_unknown_course(client, seeded, auth_headers):
    r = client.post("/course/nope/enroll", headers=auth_headers)
    assert r.status_code == 404
