from mystic.main import run

run()
