"""AppContext — shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. The node, service and adapter are built lazily so
``--help`` and ``operations`` never read a snapshot.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from tangleapi.output.formatters import format_reply

if TYPE_CHECKING:
    from tangleapi.config.settings import TangleSettings
    from tangleapi.formats.adapter import AdapterReply, FormatAdapter
    from tangleapi.infrastructure.tangle import Tangle
    from tangleapi.services.node import NodeService


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: TangleSettings) -> None:
        self.settings = settings
        self._tangle: Tangle | None = None
        self._service: NodeService | None = None
        self._adapter: FormatAdapter | None = None

        from tangleapi.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from tangleapi.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def tangle(self) -> Tangle:
        """The node collaborator: the configured snapshot, or an empty node."""
        if self._tangle is None:
            from tangleapi.infrastructure.snapshot import SnapshotError, load_snapshot
            from tangleapi.infrastructure.tangle import MemoryTangle

            path = self.settings.snapshot_path
            if path is None:
                self._tangle = MemoryTangle()
            else:
                try:
                    self._tangle = load_snapshot(path)
                except SnapshotError as exc:
                    raise click.ClickException(str(exc)) from exc
        return self._tangle

    @property
    def service(self) -> NodeService:
        if self._service is None:
            from tangleapi.services.node import NodeService

            self._service = NodeService(
                self.tangle,
                app_name=self.settings.node.name,
                max_batch=self.settings.node.max_batch,
            )
        return self._service

    @property
    def adapter(self) -> FormatAdapter:
        if self._adapter is None:
            from tangleapi.formats.adapter import FormatAdapter

            self._adapter = FormatAdapter(self.service)
        return self._adapter

    def emit(self, reply: AdapterReply) -> None:
        """Print a reply with correct exit semantics.

        * Success: writes to stdout, returns normally.
        * Failure: writes to stderr, exits with code 1.
        """
        output = format_reply(reply, json_output=self.settings.json_output)
        if reply.ok:
            click.echo(output)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
