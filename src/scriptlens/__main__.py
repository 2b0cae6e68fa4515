from scriptlens.main import app

app()
