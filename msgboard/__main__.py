"""Run the message board server: python -m msgboard"""

from msgboard.main import run

if __name__ == "__main__":
    run()
