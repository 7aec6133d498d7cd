import sys

from rfiddoor.main import run

if __name__ == '__main__':
    sys.exit(run())
