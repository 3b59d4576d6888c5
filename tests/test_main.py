import pytest

from aftmi.main import main


def test_single_dataset_cli(capsys):
    assert main(['--single', '--n', '150', '--M', '2', '--seed', '3']) == 0

    out = capsys.readouterr().out
    for label in ('CC', 'MS', 'MI-ind', 'MI'):
        assert label in out
    assert "Complete-case outcome model" in out


def test_cli_reports_configuration_errors(capsys):
    assert main(['--single', '--M', '0']) == 1
    assert "M must be a positive integer" in capsys.readouterr().out


def test_cli_rejects_unsupported_censoring_level():
    with pytest.raises(SystemExit):
        main(['--censoring', '0.3'])
