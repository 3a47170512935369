from __future__ import annotations

import logging
import os


def configure_logging(*, cli_level: str | None = None) -> None:
    """Configure root logging for the app.

    Precedence:
    1) `cli_level` (e.g. from argparse)
    2) env var `MUSTANG_LOG_LEVEL`
    3) default INFO

    Loggers in this app are named after modules (`mustangcontrol.transport.hid_transport`
    logs every `TX report:` / `RX report:` at DEBUG) or after classes
    (`SyncEngine`, `AmpController`, `EffectController`, `PresetController`),
    plus `main` for the command line. DEBUG shows raw reports; INFO shows
    connection states, bypass-poll outcomes and singleton migrations.

    This should be called once, early in the entrypoint.
    """

    level_name = (cli_level or os.environ.get("MUSTANG_LOG_LEVEL") or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        force=True,
    )
