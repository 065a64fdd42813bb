import json

from scripts.plan_topology import main


def test_plan_prints_report(capsys):
    assert main(["plan", "24"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["plan"]["topology_type"] == "tube_system"
    assert payload["validation"]["is_valid"] is True
    assert payload["diagram"]["stages"][0]["device_name"] == "MS_1"
    assert payload["recommendations"][0].startswith("Use TUBE SYSTEM")


def test_plan_over_capacity_exits_non_zero(capsys):
    assert main(["plan", "200", "--technology", "epon"]) == 1
    payload = json.loads(capsys.readouterr().out)
    assert payload["validation"]["errors"] == [
        "Subscriber count 200 exceeds EPON capacity limit of 64"
    ]


def test_plan_rejects_non_positive_count(capsys):
    assert main(["plan", "0"]) == 2
    assert "positive" in capsys.readouterr().err


def test_database_commands_use_application_sessions():
    from app.db import SessionLocal
    from scripts.plan_topology import _repository

    assert _repository().session_factory is SessionLocal
