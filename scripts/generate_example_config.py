import toml

from smith_client.config.manager import DEFAULTS


def generate_example_config(path='config.example.toml'):
    with open(path, 'w') as f:
        toml.dump(DEFAULTS, f)


if __name__ == "__main__":
    generate_example_config()
