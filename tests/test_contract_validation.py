from pathlib import Path

from lrv.common.contract import OBSERVATION_RECORD, contract_errors, load_contract

REPO_ROOT = Path(__file__).resolve().parents[1]


def _payload(**overrides):
    payload = {
        "p_name": "Jane Roe",
        "P_age": "34",
        "P_id": "P1",
        "sex": "F",
        "result": [
            {"localTestId": "glucose", "value": "126", "unit": "mg/dl", "timestamp": "2024-01-01T00:00:00Z"}
        ],
        "submittedBy": "tech-7",
        "submittedAt": "2024-01-01T00:05:00Z",
        "healthsecterid": "HS-1",
    }
    payload.update(overrides)
    return payload


def test_contract_accepts_minimal_valid_batch():
    v = load_contract(REPO_ROOT)
    assert contract_errors(v, _payload()) == []


def test_contract_requires_at_least_one_item():
    v = load_contract(REPO_ROOT)
    errors = contract_errors(v, _payload(result=[]))
    assert errors and errors[0].startswith("result")


def test_contract_reports_missing_item_fields():
    v = load_contract(REPO_ROOT)
    errors = contract_errors(v, _payload(result=[{"localTestId": "glucose", "value": 1}]))
    assert any("'unit' is a required property" in e for e in errors)
    assert any("'timestamp' is a required property" in e for e in errors)


def test_contract_checks_timestamp_format():
    v = load_contract(REPO_ROOT)
    errors = contract_errors(v, _payload(submittedAt="yesterday"))
    assert errors and errors[0].startswith("submittedAt")


def test_observation_record_contract():
    v = load_contract(REPO_ROOT, OBSERVATION_RECORD)
    record = {
        "sequence": 1,
        "loincCode": "2345-7",
        "patientId": "P1",
        "value": 126.0,
        "unit": "mg/dL",
        "abnormalFlag": "H",
        "status": "final",
        "recordedAt": "2024-01-01T00:00:00Z",
        "performer": "tech-7",
        "rawTest": {},
    }
    assert contract_errors(v, record) == []

    record["abnormalFlag"] = "HH"
    errors = contract_errors(v, record)
    assert len(errors) == 1 and errors[0].startswith("abnormalFlag")


def test_contract_item_value_is_number_or_text():
    v = load_contract(REPO_ROOT)
    item = {"localTestId": "glucose", "unit": "mg/dl", "timestamp": "2024-01-01T00:00:00Z"}

    assert contract_errors(v, _payload(result=[dict(item, value=126)])) == []
    assert contract_errors(v, _payload(result=[dict(item, value="trace")])) == []
    for bad in (None, False, {}, []):
        errors = contract_errors(v, _payload(result=[dict(item, value=bad)]))
        assert errors and errors[0].startswith("result.0.value")
