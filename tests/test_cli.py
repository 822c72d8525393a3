import json

from brenner_engine.main import run
from conftest import make_test

ABC_SHA256 = "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


def _write(tmp_path, name: str, payload) -> str:
    path = tmp_path / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_validate_test_accepts_valid_design(tmp_path, capsys) -> None:
    path = _write(tmp_path, "test.json", make_test().to_dict())

    assert run(["validate-test", path]) == 0

    report = json.loads(capsys.readouterr().out)
    assert report["valid"] is True
    assert report["discriminative_power"] == 3


def test_validate_test_rejects_missing_positive_control(tmp_path, capsys) -> None:
    data = make_test().to_dict()
    del data["potencyCheck"]["positiveControl"]
    path = _write(tmp_path, "test.json", data)

    assert run(["validate-test", path]) == 1

    output = json.loads(capsys.readouterr().out)
    assert output["valid"] is False
    assert any("positiveControl" in issue for issue in output["issues"])


def test_score_session(tmp_path, capsys) -> None:
    path = _write(tmp_path, "session.json", {"session_id": "s1"})

    assert run(["score-session", path]) == 0

    score = json.loads(capsys.readouterr().out)
    assert score["max_score"] == 120
    assert score["grade"] == "F"


def test_score_session_rejects_malformed_data(tmp_path, capsys) -> None:
    path = _write(tmp_path, "session.json", {"artifact": {}})
    assert run(["score-session", path]) == 1
    assert "session_id: Field required" in capsys.readouterr().out


def test_validate_record_reports_errors(tmp_path, capsys) -> None:
    path = _write(tmp_path, "record.json", {"id": "nope"})
    assert run(["validate-record", path]) == 1
    assert json.loads(capsys.readouterr().out)["valid"] is False


def test_hash(tmp_path, capsys) -> None:
    path = tmp_path / "body.md"
    path.write_text("abc", encoding="utf-8")

    assert run(["hash", str(path)]) == 0
    assert capsys.readouterr().out.strip() == ABC_SHA256
