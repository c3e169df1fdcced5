import io
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import patch

import toml

from smith_client.cli import main
from smith_client.printer.channels import StatusFile
from smith_client.printer.state import PrinterStatus


class TestCLI(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)
        self.config_path = self.root / 'config.toml'

    def tearDown(self):
        self.tmp.cleanup()

    def run_cli(self, *argv):
        out = io.StringIO()
        with redirect_stdout(out):
            code = main(['--config', str(self.config_path), *argv])
        return code, out.getvalue()

    def test_no_command_prints_help(self):
        code, output = self.run_cli()
        self.assertEqual(code, 1)
        self.assertIn('usage:', output)

    def test_invalid_command(self):
        with self.assertRaises(SystemExit) as cm:
            main(['invalid-command'])
        self.assertEqual(cm.exception.code, 2)

    def test_update_config(self):
        code, output = self.run_cli('config', '--command-pipe', '/run/CommandPipe',
                                    '--print-data-dir', '/data/print')
        self.assertEqual(code, 0)
        self.assertIn('updated successfully', output)
        saved = toml.load(self.config_path)
        self.assertEqual(saved['printer']['command_pipe'], '/run/CommandPipe')
        self.assertEqual(saved['paths']['print_data_dir'], '/data/print')

    def test_show_config(self):
        code, output = self.run_cli('config', '--show')
        self.assertEqual(code, 0)
        self.assertIn('/tmp/CommandPipe', output)
        self.assertIn('not created yet', output)

    def test_status(self):
        status_path = self.root / 'status.json'
        StatusFile(status_path).write(PrinterStatus('Home', 'DownloadFailed'))
        self.config_path.write_text(toml.dumps({'printer': {'status_file': str(status_path)}}))

        code, output = self.run_cli('status')

        self.assertEqual(code, 0)
        self.assertIn('Home', output)
        self.assertIn('DownloadFailed', output)

    def test_status_unreadable(self):
        self.config_path.write_text(toml.dumps({'printer': {'status_file': str(self.root / 'none.json')}}))
        code, output = self.run_cli('status')
        self.assertEqual(code, 1)
        self.assertIn('Cannot read printer status', output)

    @patch('smith_client.main.main', return_value=0)
    def test_print_data(self, mock_main):
        code, _ = self.run_cli('print-data', 'http://host/job42.bin', '--settings', '{"JobName": "job42"}')
        self.assertEqual(code, 0)
        mock_main.assert_called_once_with(
            str(self.config_path), 'http://host/job42.bin', {'JobName': 'job42'}
        )


    def test_config_after_subcommand(self):
        status_path = self.root / 'status.json'
        StatusFile(status_path).write(PrinterStatus('Home', ''))
        self.config_path.write_text(toml.dumps({'printer': {'status_file': str(status_path)}}))

        out = io.StringIO()
        with redirect_stdout(out):
            code = main(['status', '--config', str(self.config_path)])

        self.assertEqual(code, 0)
        self.assertIn('Home', out.getvalue())

    @patch('smith_client.main.main', return_value=0)
    def test_print_data_settings_from_file(self, mock_main):
        settings_path = self.root / 'settings.json'
        settings_path.write_text('{"JobName": "job42"}')

        code = main(['print-data', 'http://host/job42.bin',
                     '--settings', '@' + str(settings_path), '--config', str(self.config_path)])

        self.assertEqual(code, 0)
        mock_main.assert_called_once_with(
            str(self.config_path), 'http://host/job42.bin', '{"JobName": "job42"}'
        )

if __name__ == '__main__':
    unittest.main()
