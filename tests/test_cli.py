"""Tests for the flask CLI commands."""

from werkzeug.security import check_password_hash

from medlead.models.indication import Indication
from medlead.models.lead import Lead
from medlead.models.user import User


class TestSeedDoctor:

    def test_creates_doctor_page_pipeline_and_referral(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "seed-doctor", "--email", "ana@clinica.com", "--password", "s3cret", "--slug", "dr-ana",
        ])
        assert result.exit_code == 0, result.output
        assert "Seed data created successfully!" in result.output

        doctor = User.query.filter_by(email="ana@clinica.com").one()
        assert doctor.slug == "dr-ana"
        assert check_password_hash(doctor.password_hash, "s3cret")
        assert [b.type for b in doctor.page.blocks] == ["FORM", "BUTTON", "ADDRESS"]
        assert doctor.pipelines.count() == 1
        assert Indication.query.filter_by(user_id=doctor.id, slug="instagram").count() == 1

    def test_existing_doctor_is_left_alone(self, app, seed_data):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["seed-doctor", "--email", "silva@clinica.com"])
        assert result.exit_code == 0
        assert "already exists" in result.output

    def test_slug_taken(self, app, seed_data):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["seed-doctor", "--email", "novo@clinica.com", "--slug", "dr-silva"])
        assert result.exit_code != 0
        assert User.query.filter_by(email="novo@clinica.com").count() == 0


class TestImportLeads:

    def test_imports_csv_for_doctor(self, app, seed_data, tmp_path):
        csv_file = tmp_path / "pacientes.csv"
        csv_file.write_text("name,phone,status\nBruna,11977776666,Fechado\nSem telefone,,\n", encoding="utf-8")

        runner = app.test_cli_runner()
        result = runner.invoke(args=["import-leads", "--email", "silva@clinica.com", str(csv_file)])
        assert result.exit_code == 0, result.output
        assert "Imported 1 of 2 row(s)." in result.output
        assert "row 2" in result.output

        bruna = Lead.query.filter_by(name="Bruna").one()
        assert bruna.user_id == seed_data["silva_id"]
        assert bruna.status == "Fechado"

    def test_unknown_owner(self, app, seed_data, tmp_path):
        csv_file = tmp_path / "pacientes.csv"
        csv_file.write_text("name,phone\nBruna,1\n", encoding="utf-8")
        runner = app.test_cli_runner()
        result = runner.invoke(args=["import-leads", "--email", "x@y.com", str(csv_file)])
        assert result.exit_code != 0
