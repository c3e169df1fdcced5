import argparse
import sys

from smith_client.config.manager import ConfigManager, SEARCH_PATHS, find_config_file
from smith_client.printer.state import PrinterError


def get_config_path(explicit=None):
    """Config file to edit: explicit, first existing, or the per-user default."""
    if explicit:
        return explicit
    return find_config_file() or SEARCH_PATHS[1]


def build_parser():
    parser = argparse.ArgumentParser(
        prog='smith-client',
        description='Smith print client',
    )
    parser.add_argument('--config', type=str, help='Path to config.toml')

    # --config may also follow the subcommand
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--config', type=str, default=argparse.SUPPRESS, help='Path to config.toml')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    print_parser = subparsers.add_parser('print-data', parents=[common], help='Download print data and load it on the printer')
    print_parser.add_argument('file_url', help='URL of the print data file')
    print_parser.add_argument('--settings', default='',
                              help='Print settings: inline JSON, text, or @path/to/file')

    subparsers.add_parser('status', parents=[common], help='Show printer state and substate')

    config_parser = subparsers.add_parser('config', parents=[common], help='Manage configuration settings')
    config_parser.add_argument('--print-data-dir', type=str, help='Directory print data is downloaded to')
    config_parser.add_argument('--settings-file', type=str, help='File the printer loads print settings from')
    config_parser.add_argument('--command-pipe', type=str, help='Printer command pipe')
    config_parser.add_argument('--status-file', type=str, help='Printer status file')
    config_parser.add_argument('--show', action='store_true', help='Show current configuration')

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == 'print-data':
        return print_data(args)
    elif args.command == 'status':
        return show_status(args)
    elif args.command == 'config':
        return manage_config(args)
    else:
        parser.print_help()
        return 1


def print_data(args):
    from smith_client.main import main as run_main, parse_settings
    return run_main(args.config, args.file_url, parse_settings(args.settings))


def show_status(args):
    from smith_client.main import build_printer
    printer = build_printer(ConfigManager(args.config))
    try:
        status = printer.status()
    except PrinterError as e:
        print(f"✗ {e}")
        return 1
    print(f"State:    {status.state}")
    print(f"Substate: {status.substate or '-'}")
    return 0


CONFIG_OPTIONS = {
    'print_data_dir': 'paths.print_data_dir',
    'settings_file': 'paths.print_settings_file',
    'command_pipe': 'printer.command_pipe',
    'status_file': 'printer.status_file',
}


def manage_config(args):
    """Show or update configuration settings"""
    config_path = get_config_path(args.config)
    config_manager = ConfigManager(str(config_path))

    if args.show:
        print("\n=== Current Configuration ===")
        print(f"Configuration file: {config_path}{'' if config_manager.exists() else ' (not created yet)'}")
        print("\n[Paths]")
        print(f"  Print data dir:      {config_manager.get('paths.print_data_dir')}")
        print(f"  Print settings file: {config_manager.get('paths.print_settings_file')}")
        print("\n[Printer]")
        print(f"  Command pipe:        {config_manager.get('printer.command_pipe')}")
        print(f"  Status file:         {config_manager.get('printer.status_file')}")
        print("\n[Download]")
        print(f"  Timeout:             {config_manager.get('download.timeout')}s")
        print(f"  Chunk size:          {config_manager.get('download.chunk_size')} bytes")
        return 0

    updates = {}
    for option, key in CONFIG_OPTIONS.items():
        value = getattr(args, option)
        if value:
            config_manager.set(key, value)
            updates[key] = value

    if updates:
        print("\n✓ Configuration updated successfully!")
        for key, value in updates.items():
            print(f"  {key}: {value}")
    else:
        print("No configuration changes specified. Use --help to see available options.")
    return 0


def run():
    sys.exit(main())


if __name__ == '__main__':
    run()
