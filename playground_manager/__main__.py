from playground_manager.cli import app

app()
