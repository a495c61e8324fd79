import pytest

from contact_api.core.config import Settings
from contact_api.core.errors import ConfigurationError
from contact_api.services.templates import TemplateVariant


def test_complete_configuration_resolves(settings):
    sheet = settings.spreadsheet_config()
    assert sheet.tenant_id == "tenant-123"
    assert sheet.client_secret.get_secret_value() == "s3cret"
    assert sheet.table_name == "Table1"

    smtp = settings.smtp_config()
    assert smtp.host == "smtp.agency.test"
    assert smtp.port == 587
    assert not smtp.use_implicit_tls
    assert smtp.owner_address == "owner@agency.test"


def test_missing_spreadsheet_settings_are_named(make_settings):
    settings = make_settings(ms365_client_secret=None, excel_file_path=None)
    with pytest.raises(ConfigurationError) as exc:
        settings.spreadsheet_config()
    assert "MS365_CLIENT_SECRET" in exc.value.message
    assert "EXCEL_FILE_PATH" in exc.value.message


def test_missing_smtp_credentials(make_settings):
    settings = make_settings(SMTP_PASS=None)
    with pytest.raises(ConfigurationError, match="SMTP_PASS"):
        settings.smtp_config()
    assert settings.channel_status() == {"spreadsheet": True, "email": False}


def test_owner_defaults_to_smtp_user(make_settings):
    settings = make_settings(mail_to_owner=None)
    assert settings.smtp_config().owner_address == "hello@agency.test"


def test_implicit_tls_on_465(make_settings):
    assert make_settings(SMTP_PORT=465).smtp_config().use_implicit_tls


def test_service_links_fall_back_to_booking_link(make_settings):
    settings = make_settings(book_link_ai="https://book.agency.test/ai")
    links = settings.service_links()
    assert links["ai"] == "https://book.agency.test/ai"
    assert links["crypto"] == "https://book.agency.test/call"

    assert make_settings(booking_link=None).service_links()["web"] == "#"


def test_ms365_smtp_names_are_accepted(monkeypatch):
    monkeypatch.setenv("MS365_SMTP_HOST", "smtp.office365.com")
    monkeypatch.setenv("MS365_SMTP_PORT", "465")
    monkeypatch.setenv("MS365_SMTP_USER", "info@agency.test")
    monkeypatch.setenv("MS365_SMTP_PASS", "pw")
    monkeypatch.setenv("MAIL_TEMPLATE_VARIANT", "minimal")

    settings = Settings(_env_file=None)

    assert settings.smtp_port == 465
    assert settings.smtp_user == "info@agency.test"
    assert settings.mail_template_variant is TemplateVariant.MINIMAL


def test_defaults(monkeypatch):
    for key in ("SMTP_HOST", "MS365_SMTP_HOST", "SMTP_PORT", "MS365_SMTP_PORT", "CONTACT_MIN_DWELL_MS"):
        monkeypatch.delenv(key, raising=False)
    settings = Settings(_env_file=None)
    assert settings.smtp_host == "smtp.office365.com"
    assert settings.smtp_port == 587
    assert settings.excel_table_name == "Table1"
    assert settings.contact_min_dwell_ms == 3000
    assert settings.mail_from_name == "Gator Engineered"


def test_strict_config_refuses_to_start(make_settings):
    from contact_api.main import check_configuration

    with pytest.raises(ConfigurationError, match="SMTP_USER"):
        check_configuration(make_settings(strict_config=True, SMTP_USER=None))


def test_lenient_config_only_warns(make_settings, caplog):
    from contact_api.main import check_configuration

    check_configuration(make_settings(ms365_tenant_id=None))
    assert "spreadsheet channel not configured" in caplog.text
