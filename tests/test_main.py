import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import toml

from smith_client.config.manager import ConfigManager
from smith_client.jobs import processor
from smith_client.jobs.ingestor import IngestionState
from smith_client.main import build_printer, parse_settings, run_print_data
from smith_client.printer.channels import StatusFile
from smith_client.printer.state import HOME_STATE, PrinterStatus

from fakes import failed_download, successful_download

URL = 'http://host/job42.bin'


class TestRunPrintData(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        processor.reset()
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)
        config_path = self.root / 'config.toml'
        config_path.write_text(toml.dumps({
            'paths': {
                'print_data_dir': str(self.root / 'print_data'),
                'print_settings_file': str(self.root / 'print_settings.json'),
            },
            'printer': {
                'command_pipe': str(self.root / 'CommandPipe'),
                'status_file': str(self.root / 'status.json'),
            },
        }))
        self.config = ConfigManager(str(config_path))
        StatusFile(self.root / 'status.json').write(PrinterStatus(HOME_STATE, ''))

    def tearDown(self):
        processor.reset()
        self.tmp.cleanup()

    async def test_end_to_end_through_files(self):
        with patch('smith_client.main.build_downloader', return_value=successful_download(URL, b'b1', b'b2')):
            state = await run_print_data(self.config, URL, {'JobName': 'job42'})

        self.assertEqual(state, IngestionState.DONE)
        self.assertEqual((self.root / 'print_data' / 'job42.bin').read_bytes(), b'b1b2')
        self.assertEqual((self.root / 'CommandPipe').read_text(),
                         'SHOWPRINTDATALOADING\nPROCESSPRINTDATA\nAPPLYPRINTSETTINGS\n')
        self.assertEqual((self.root / 'print_settings.json').read_text(), '{"JobName": "job42"}')

    async def test_download_failure(self):
        with patch('smith_client.main.build_downloader', return_value=failed_download(URL)):
            with self.assertLogs('smith_client.jobs.ingestor', level='ERROR'):
                state = await run_print_data(self.config, URL)

        self.assertEqual(state, IngestionState.DOWNLOAD_FAILED)
        self.assertFalse((self.root / 'CommandPipe').exists())

    async def test_rejected_command(self):
        with self.assertLogs('smith_client.jobs.processor', level='ERROR'):
            state = await run_print_data(self.config, 'http://host/')
        self.assertEqual(state, IngestionState.ABORTED)

    def test_build_printer_uses_config_paths(self):
        printer = build_printer(self.config)
        self.assertEqual(printer.print_data_dir.path, self.root / 'print_data')
        self.assertEqual(printer.status().state, HOME_STATE)


class TestParseSettings(unittest.TestCase):

    def test_json(self):
        self.assertEqual(parse_settings('{"a": 1}'), {'a': 1})

    def test_plain_text(self):
        self.assertEqual(parse_settings('not json'), 'not json')
        self.assertEqual(parse_settings(''), '')

    def test_file(self):
        with tempfile.NamedTemporaryFile('w', suffix='.json', delete=False) as f:
            f.write('{"from": "file"}')
        try:
            self.assertEqual(parse_settings('@' + f.name), '{"from": "file"}')
        finally:
            Path(f.name).unlink()


if __name__ == '__main__':
    unittest.main()
