import json
import logging

import pytest

from scripts.main import main, parse_args


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


def test_parse_args_defaults():
    args = parse_args(['validate'])
    assert args.command == 'validate'
    assert args.draws == 300
    assert args.min_training_size == 100
    assert args.method == 'bootstrap'


def test_parse_args_requires_command():
    with pytest.raises(SystemExit):
        parse_args([])


def test_validate_command_writes_json(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    output = tmp_path / 'validation.json'
    code = main(['--draws', '140', '--seed', '1', '--no-progress', '--output', str(output),
                 'validate', '--min-training-size', '100', '--test-window-size', '10',
                 '--step-size', '10', '--max-periods', '2', '--bootstrap-iterations', '20'])

    assert code == 0
    result = json.loads(output.read_text())
    assert result['summary']['validation_periods'] == 2
    assert len(result['method_details']) == 4
    assert result['cancelled'] is False
    assert (tmp_path / 'logs' / 'lottery.log').exists()


def test_optimize_command_prints_json(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    code = main(['--draws', '60', '--seed', '2', '--no-progress',
                 'optimize', '--type', 'offsets', '--iterations', '2', '--folds', '3'])

    assert code == 0
    result = json.loads(capsys.readouterr().out)
    assert result['type'] == 'offsets'
    assert result['trials'] == 2
    assert len(result['best_params']['offsets']) == 8


def test_failed_task_returns_error_code(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    def failing_task(args, draws):
        def task(progress_callback, cancel_token):
            raise RuntimeError("optimizer exploded")
        return 'optimize', task

    monkeypatch.setattr('scripts.main.build_task', failing_task)
    assert main(['--draws', '10', '--no-progress', 'optimize']) == 1
