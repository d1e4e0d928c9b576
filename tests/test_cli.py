"""
CLI command tests — create-user, seed-demo.
"""

from cmcs.models import db
from cmcs.models.claim import Claim
from cmcs.models.user import User
from cmcs.services.jwt_service import decode_access_token


def test_create_user_prints_token(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=[
        "create-user", "--email", "nomsa@cmcs.test", "--first-name", "Nomsa",
        "--last-name", "Zulu", "--role", "coordinator",
    ])
    assert result.exit_code == 0, result.output

    user = db.session.query(User).filter_by(email="nomsa@cmcs.test").one()
    payload = decode_access_token(result.output.strip().splitlines()[-1])
    assert payload["sub"] == str(user.id)
    assert payload["role"] == "coordinator"


def test_create_user_rejects_unknown_role(app):
    result = app.test_cli_runner().invoke(args=[
        "create-user", "--email", "x@cmcs.test", "--first-name", "X",
        "--last-name", "Y", "--role", "dean",
    ])
    assert result.exit_code != 0
    assert db.session.query(User).count() == 0


def test_seed_demo_is_idempotent(app):
    runner = app.test_cli_runner()
    assert runner.invoke(args=["seed-demo"]).exit_code == 0
    assert db.session.query(User).count() == 4
    statuses = {c.status for c in db.session.query(Claim).all()}
    assert statuses == {"pending", "coordinator_approved", "approved", "rejected"}

    runner.invoke(args=["seed-demo"])
    assert db.session.query(User).count() == 4
