from hashindex.cli import app

app(prog_name="hx")
