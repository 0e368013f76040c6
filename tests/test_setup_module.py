import logging

import pytest

import test_setup


def test_check_packages():
    assert test_setup.check_packages(["sys", "decimal"]) == []
    assert test_setup.check_packages(["sys", "definitely_not_a_real_package_xyz"]) == [
        "definitely_not_a_real_package_xyz"
    ]


@pytest.mark.parametrize('level, expected', [
    ('debug', logging.DEBUG),
    (' WARNING ', logging.WARNING),
    ('INFO', logging.INFO),
])
def test_check_log_level(level, expected):
    assert test_setup.check_log_level(level) == expected


def test_check_log_level_reads_environment(monkeypatch):
    monkeypatch.setenv('FINANCE_LOG_LEVEL', 'error')
    assert test_setup.check_log_level() == logging.ERROR

    monkeypatch.setenv('FINANCE_LOG_LEVEL', 'chatty')
    with pytest.raises(ValueError):
        test_setup.check_log_level()


def test_check_schema_creates_model_tables(app, tmp_path):
    uri = 'sqlite:///' + str(tmp_path / 'schema.db')
    tables = test_setup.check_schema(uri)
    assert {'transactions', 'budgets', 'goals'} <= tables


def test_check_schema_uses_configured_uri(app, tmp_path, monkeypatch):
    path = tmp_path / 'configured.db'
    monkeypatch.setenv('FINANCE_DB_URI', 'sqlite:///' + str(path))
    test_setup.check_schema()
    assert path.exists()


def test_run_checks(app, tmp_path, monkeypatch, capsys):
    monkeypatch.setenv('FINANCE_DB_URI', 'sqlite:///' + str(tmp_path / 'run.db'))
    monkeypatch.setenv('FINANCE_LOG_LEVEL', 'debug')
    assert test_setup.run_checks(interactive=False) is True
    out = capsys.readouterr().out
    assert 'Log level: DEBUG' in out
    assert 'budgets, goals, transactions' in out
