from storefront.extensions import db
from storefront.models import Admin, OrphanedFile


def test_create_admin(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["create-admin", "--username", "boss", "--password", "hunter22"])

    assert result.exit_code == 0
    assert "Admin ready: boss" in result.output
    with app.app_context():
        assert Admin.query.filter_by(username="boss").one().check_password("hunter22")


def test_create_admin_does_not_overwrite_without_force(app):
    runner = app.test_cli_runner()
    runner.invoke(args=["create-admin", "--username", "boss", "--password", "first"])

    result = runner.invoke(args=["create-admin", "--username", "boss", "--password", "second"])
    assert "already exists" in result.output
    with app.app_context():
        assert Admin.query.one().check_password("first")

    runner.invoke(args=["create-admin", "--username", "boss", "--password", "second", "--force"])
    with app.app_context():
        assert Admin.query.count() == 1
        assert Admin.query.one().check_password("second")


def test_purge_orphans(app, store):
    with app.app_context():
        db.session.add(OrphanedFile(image_url="/uploads/images-1-1.jpg", error="locked"))
        db.session.commit()

    result = app.test_cli_runner().invoke(args=["purge-orphans"])

    assert result.exit_code == 0
    assert "Purged 1 orphaned file(s), 0 still pending" in result.output
