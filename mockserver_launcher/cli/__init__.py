from mockserver_launcher.cli.main import cli, main

__all__ = ["cli", "main"]
