import sys
from dotenv import load_dotenv

load_dotenv(override=False)

from access.config import load_config
from access.console import run_console

def main():
    config = load_config()
    return run_console(config)

if __name__ == "__main__":
    sys.exit(main())
