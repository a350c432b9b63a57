import click

from batch_signer.notifications.base import BaseNotifier


class ConsoleNotifier(BaseNotifier):
    """Prints notifications to the terminal with click."""

    def info(self, title: str, text: str) -> None:
        self._emit(title, text, fg="cyan")

    def success(self, title: str, text: str) -> None:
        self._emit(title, text, fg="green")

    def warning(self, title: str, text: str) -> None:
        self._emit(title, text, fg="yellow", err=True)

    def error(self, title: str, text: str) -> None:
        self._emit(title, text, fg="red", err=True)

    def progress(self, text: str) -> None:
        click.echo(f"  ... {text}")

    @staticmethod
    def _emit(title: str, text: str, *, fg: str, err: bool = False) -> None:
        click.secho(title, fg=fg, bold=True, err=err)
        click.echo(text, err=err)
