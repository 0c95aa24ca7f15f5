"""Request payload builders shared by unit, integration and e2e tests."""


def employee_payload(**overrides):
    payload = {
        "username": "jdoe",
        "email": "jane.doe@acme.io",
        "name": "Jane",
        "surname": "Doe",
        "job_title": "Engineer",
        "department": "Platform",
        "hire_date": "2024-03-01",
        "password": "s3cure-passw0rd",
    }
    payload.update(overrides)
    return payload


def survey_payload(**overrides):
    payload = {
        "title": "Quarterly pulse",
        "description": "How are things going?",
        "questions": [
            {"question_text": "How likely are you to recommend us?", "question_type": "nps", "order": 1},
            {"question_text": "What should we improve?", "question_type": "text", "order": 2, "is_required": False},
        ],
    }
    payload.update(overrides)
    return payload
