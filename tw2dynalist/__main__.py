from tw2dynalist.main import run

run()
