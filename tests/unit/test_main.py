"""Unit tests for logging setup, the console view and the CLI."""

import logging
import sys
from unittest.mock import patch

import pytest
from rich.console import Console

from finvoice import main as main_module
from finvoice.config import FinVoiceConfig
from finvoice.models.capture import CaptureState, CaptureStateEvent
from finvoice.models.forms import draft_from_voice
from finvoice.models.transcription import FormType, TranscriptionResponse
from finvoice.ui import ConsoleView


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def recording_console():
    return Console(record=True, width=100, force_terminal=False)


@pytest.mark.unit
class TestSetupLogging:

    def test_file_and_console_handlers(self, tmp_path, restore_root_logger):
        """Test logs go to a DEBUG file handler and a WARNING console handler."""
        config = FinVoiceConfig()
        log_path = tmp_path / "logs" / "finvoice.log"
        config.set('logging.file_path', str(log_path))

        main_module.setup_logging(config, "DEBUG")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        file_handlers = [h for h in root.handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].level == logging.DEBUG
        console_handlers = [h for h in root.handlers if type(h) is logging.StreamHandler]
        assert console_handlers[0].level == logging.WARNING

        logging.getLogger("finvoice.test").debug("hello from test")
        file_handlers[0].flush()
        assert "hello from test" in log_path.read_text()

    def test_console_output_disabled(self, tmp_path, restore_root_logger):
        config = FinVoiceConfig()
        config.set('logging.file_path', str(tmp_path / "f.log"))
        config.set('logging.console_output', False)

        main_module.setup_logging(config, "INFO")

        assert all(isinstance(h, logging.FileHandler) for h in logging.getLogger().handlers)


@pytest.mark.unit
class TestConsoleView:

    def test_state_titles(self, recording_console):
        view = ConsoleView(recording_console)

        view.on_state(CaptureStateEvent(CaptureState.IDLE, CaptureState.LISTENING, generation=1))
        view.on_state(CaptureStateEvent(CaptureState.LISTENING, CaptureState.ERROR, generation=1,
                                        error_message="No audio recorded"))

        text = recording_console.export_text()
        assert "Recording..." in text
        assert "No audio recorded" in text

    def test_show_complete_draft(self, recording_console):
        """Test the draft table shows voice-filled values and readiness."""
        draft = draft_from_voice(
            TranscriptionResponse("beli kopi dua puluh ribu", {"amount": 20000, "category": "Food"}),
            FormType.EXPENSE,
        )

        ConsoleView(recording_console).show_draft(draft)

        text = recording_console.export_text()
        assert "beli kopi dua puluh ribu" in text
        assert "20,000" in text
        assert "reimbursed" in text
        assert "Ready to submit" in text

    def test_show_incomplete_income_draft(self, recording_console):
        draft = draft_from_voice(TranscriptionResponse("gaji", {}), FormType.INCOME)

        ConsoleView(recording_console).show_draft(draft)

        text = recording_console.export_text()
        assert "reimbursed" not in text
        assert "Missing: subject, category, amount" in text


@pytest.mark.unit
class TestMain:

    def test_serve_command(self, restore_root_logger, tmp_path):
        config_path = tmp_path / "c.yaml"
        config_path.write_text("logging:\n  file_path: f.log\n")

        with patch.object(sys, "argv", ["finvoice", "--config", str(config_path), "serve"]), \
                patch.object(main_module, "run_server") as run_server:
            main_module.main()

        run_server.assert_called_once()
        assert run_server.call_args.args[0].get('server.port') == 8080

    def test_record_command_overrides_server(self, restore_root_logger, tmp_path):
        config_path = tmp_path / "c.yaml"
        config_path.write_text("logging:\n  file_path: f.log\n")
        argv = ["finvoice", "--config", str(config_path), "record", "--type", "income",
                "--server", "http://example:9000", "--timeout", "5"]

        with patch.object(sys, "argv", argv), \
                patch.object(main_module, "record_once", return_value=0) as record_once:
            with pytest.raises(SystemExit) as exc_info:
                main_module.main()

        assert exc_info.value.code == 0
        config, form_type = record_once.call_args.args
        assert form_type is FormType.INCOME
        assert config.get('client.server_url') == "http://example:9000"
        assert record_once.call_args.kwargs["timeout"] == 5.0

    def test_missing_config_exits(self, tmp_path, capsys):
        with patch.object(sys, "argv", ["finvoice", "--config", str(tmp_path / "nope.yaml"), "serve"]):
            with pytest.raises(SystemExit) as exc_info:
                main_module.main()

        assert exc_info.value.code == 1
        assert "Configuration file not found" in capsys.readouterr().out


class InstantController:
    """Stands in for the capture controller and answers on start."""

    outcome = TranscriptionResponse("gaji lima juta", {"amount": 5000000, "subject": "Al"})

    def __init__(self, on_result, on_error, error=None):
        self.on_result = on_result
        self.on_error = on_error
        self.error = error
        self.closed = False

    @classmethod
    def from_config(cls, config, form_type, on_result, on_error, publisher):
        cls.instance = cls(on_result, on_error, error=config.get('test.error'))
        return cls.instance

    def start_listening(self):
        if self.error:
            self.on_error(self.error)
        else:
            self.on_result(self.outcome)

    def stop_listening(self):
        pass

    def close(self):
        self.closed = True


@pytest.mark.unit
class TestRecordOnce:

    def test_result_prints_draft(self, config):
        with patch.object(main_module, "CaptureController", InstantController), \
                patch.object(ConsoleView, "show_draft") as show_draft:
            code = main_module.record_once(config, FormType.INCOME, timeout=1)

        assert code == 0
        assert InstantController.instance.closed
        draft = show_draft.call_args.args[0]
        assert draft.amount == 5000000
        assert draft.subject == "Al"

    def test_error_exit_code(self, config):
        config.set('test.error', "Permission denied by user")

        with patch.object(main_module, "CaptureController", InstantController):
            code = main_module.record_once(config, FormType.EXPENSE, timeout=1)

        assert code == 1
        assert InstantController.instance.closed
