import pytest

from roster import STUDENTS
from schemas import ErrorResponse
from week import business_today


def submit(client, **body):
    return client.post("/api/reports", json=body)


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "lab-daily-api"}


def test_students(client):
    response = client.get("/api/reports/students")
    assert response.status_code == 200
    assert response.json()["students"] == STUDENTS


def test_submit_then_student_status(client):
    """First submission of the day creates the report."""
    response = submit(client, student_name="张三", work_done="[PCR] ran gel")
    assert response.status_code == 201
    assert response.json() == {"message": "日报提交成功"}

    response = client.get("/api/reports/status", params={"student_name": "张三"})
    assert response.status_code == 200
    data = response.json()
    assert data["submitted"] is True
    assert data["submittedAt"].endswith("+08:00")


def test_resubmit_same_day_updates(client):
    """Second submission overwrites the first; only one row exists."""
    submit(client, student_name="张三", work_done="[PCR] ran gel", problems="ladder smeared")
    response = submit(client, student_name="张三", work_done="[PCR] re-ran gel, fixed ladder")
    assert response.status_code == 200
    assert response.json() == {"message": "日报已更新"}

    response = client.get("/api/reports", params={"date": business_today()})
    data = response.json()
    assert data["date"] == business_today()
    assert len(data["reports"]) == 1
    report = data["reports"][0]
    assert report["work_done"] == "[PCR] re-ran gel, fixed ladder"
    # Omitted optional fields are overwritten with empty strings
    assert report["problems"] == ""


def test_reports_default_to_today(client):
    submit(client, student_name="李四", work_done="[文献阅读] 读综述")
    response = client.get("/api/reports")
    assert response.status_code == 200
    data = response.json()
    assert data["date"] == business_today()
    assert [r["student_name"] for r in data["reports"]] == ["李四"]


def test_reports_newest_first(client):
    for name in ["张三", "李四", "王五"]:
        submit(client, student_name=name, work_done="[PCR] gel")
    # Re-submitting refreshes created_at, moving 张三 to the front
    submit(client, student_name="张三", work_done="[PCR] gel again")

    reports = client.get("/api/reports").json()["reports"]
    assert [r["student_name"] for r in reports] == ["张三", "王五", "李四"]


@pytest.mark.parametrize(
    "body",
    [
        {"work_done": "[PCR] gel"},
        {"student_name": "张三"},
        {"student_name": "张三", "work_done": ""},
        {"student_name": "张三", "work_done": "   "},
        {"student_name": "", "work_done": "[PCR] gel"},
    ],
)
def test_submit_missing_fields(client, body):
    response = client.post("/api/reports", json=body)
    assert response.status_code == 400
    assert response.json() == {"error": "student_name 和 work_done 为必填项"}


@pytest.mark.parametrize(
    "body",
    [
        {"student_name": "Mallory", "work_done": "[PCR] gel"},
        {"student_name": "陈思远", "work_done": "[PCR] gel", "problems": "", "plan_tomorrow": "x"},
    ],
)
def test_submit_not_on_roster(client, body):
    response = client.post("/api/reports", json=body)
    assert response.status_code == 400
    assert response.json() == {"error": "学生不在名单中"}

    assert client.get("/api/reports").json()["reports"] == []


def test_submit_malformed_body(client):
    response = client.post(
        "/api/reports", content="not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert "error" in response.json()


def test_invalid_date(client):
    response = client.get("/api/reports?date=2024-13-45")
    assert response.status_code == 400
    assert "error" in response.json()

    response = client.get("/api/reports/status?date=yesterday")
    assert response.status_code == 400

    response = client.get("/api/reports", params={"date": "2024-01- 5"})
    assert response.status_code == 400


def test_student_status_not_submitted(client):
    response = client.get("/api/reports/status", params={"student_name": "王五", "date": "2024-01-15"})
    assert response.status_code == 200
    assert response.json() == {"submitted": False, "submittedAt": None}


def test_status_summary_partitions_roster(client):
    submit(client, student_name="王五", work_done="[细胞培养] 传代")
    submit(client, student_name="张三", work_done="[PCR] gel")

    response = client.get("/api/reports/status")
    assert response.status_code == 200
    data = response.json()
    assert data["date"] == business_today()
    assert data["total"] == len(STUDENTS)
    assert data["submitted_count"] == 2
    # Roster order, not submission order
    assert data["submitted"] == ["张三", "王五"]
    assert set(data["submitted"]).isdisjoint(data["not_submitted"])
    assert sorted(data["submitted"] + data["not_submitted"]) == sorted(STUDENTS)


def test_status_summary_empty_day(client):
    data = client.get("/api/reports/status?date=2024-01-20").json()
    assert data == {
        "date": "2024-01-20",
        "total": len(STUDENTS),
        "submitted_count": 0,
        "submitted": [],
        "not_submitted": STUDENTS,
    }


def test_submit_lead(client):
    response = client.post("/api/leads", json={"name": "谭老师", "contact": "tan@example.com", "lab_size": "6-10人"})
    assert response.status_code == 201
    assert "message" in response.json()


def test_submit_lead_requires_contact(client):
    response = client.post("/api/leads", json={"name": "谭老师", "contact": " "})
    assert response.status_code == 400
    assert "error" in response.json()


def test_root_endpoint(client):
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "message" in data
    assert "docs" in data


def test_bad_request_body_is_documented(client):
    paths = client.get("/openapi.json").json()["paths"]
    for path, method in [("/api/reports", "post"), ("/api/reports", "get"), ("/api/leads", "post")]:
        schema = paths[path][method]["responses"]["400"]["content"]["application/json"]["schema"]
        assert schema["$ref"].endswith("/ErrorResponse")

    body = submit(client, student_name="Mallory", work_done="[PCR] gel").json()
    assert ErrorResponse.model_validate(body).error == "学生不在名单中"
