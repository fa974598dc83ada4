from umrah_invoice.config.settings import EnvironmentSettings, Settings


def test_defaults_follow_project_root(tmp_path):
    settings = Settings.load(project_root=tmp_path, env={})
    assert settings.output_dir == tmp_path / 'output'
    assert settings.cumulative_workbook == tmp_path / 'output' / 'hotel_invoices.xlsx'
    assert settings.staging_file.name == 'temp_invoice_buffer_v1.json'
    assert settings.mongodb_uri == ''
    assert settings.mongodb_db_name == 'umrah_invoices'
    assert settings.log_level == 'INFO'
    assert settings.pdf_template_image is None


def test_explicit_mapping_overrides(tmp_path):
    settings = Settings.load(project_root=tmp_path, env={
        'UMRAH_INVOICE_OUTPUT_DIR': str(tmp_path / 'out'),
        'UMRAH_INVOICE_MONGODB_URI': 'mongodb://db',
        'UMRAH_INVOICE_DB_NAME': 'agency',
        'UMRAH_INVOICE_LOG_LEVEL': 'debug',
        'UNRELATED': 'ignored',
    })
    assert settings.cumulative_workbook == tmp_path / 'out' / 'hotel_invoices.xlsx'
    assert settings.mongodb_uri == 'mongodb://db'
    assert settings.mongodb_db_name == 'agency'
    assert settings.log_level == 'DEBUG'


def test_process_environment_is_read(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv('UMRAH_INVOICE_MONGODB_URI', 'mongodb://env-host')
    monkeypatch.setenv('UMRAH_INVOICE_LOG_LEVEL', 'warning')

    settings = Settings.load(project_root=tmp_path)

    assert settings.mongodb_uri == 'mongodb://env-host'
    assert settings.log_level == 'WARNING'


def test_template_image_used_when_present(tmp_path):
    (tmp_path / 'assets').mkdir()
    (tmp_path / 'assets' / 'invoice_template.png').write_bytes(b'')
    settings = Settings.load(project_root=tmp_path, env={})
    assert settings.pdf_template_image == tmp_path / 'assets' / 'invoice_template.png'


def test_environment_settings_ignore_unknown_keys():
    overrides = EnvironmentSettings.from_mapping({'UMRAH_INVOICE_SOMETHING_ELSE': '1'})
    assert overrides.mongodb_uri == ''
