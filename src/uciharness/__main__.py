from uciharness.cli import app

app()
