from adaptest.cli import run

run()
