"""Connect to a Fender Mustang amplifier, print its state and run one action.

Usage: python main.py [--log-level LEVEL] [--load-preset N] [--listen] ...
"""
from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path

from hid_device import MustangHid
from mustangcontrol.app.config import ConfigManager
from mustangcontrol.app.state import summarize, summary_lines
from mustangcontrol.app.store import StoreState
from mustangcontrol.app.sync_engine import ConnectionState, SyncEngine
from mustangcontrol.domain.legacy_preset import parse_fuse_preset_xml
from mustangcontrol.domain.models import MustangModelData
from mustangcontrol.errors import MustangError
from mustangcontrol.logging_setup import configure_logging
from mustangcontrol.transport.hid_transport import HidTransport


def _print_summary(logger: logging.Logger, state: StoreState) -> None:
    for line in summary_lines(summarize(state)):
        logger.info("%s", line)


def _run_actions(args: argparse.Namespace, engine: SyncEngine, logger: logging.Logger) -> None:
    if args.amp is not None:
        model = MustangModelData.resolve_amp_by_name(args.amp)
        if model is None:
            raise SystemExit(f"Unknown amp model: {args.amp}")
        engine.amp.set_amp_model_by_id(model.id)

    if args.effect is not None:
        slot_text, name = args.effect
        model = MustangModelData.resolve_effect_by_name(name)
        if model is None:
            raise SystemExit(f"Unknown effect model: {name}")
        engine.effects.set_effect_by_id(int(slot_text), model.id)

    if args.import_fuse is not None:
        preset = parse_fuse_preset_xml(Path(args.import_fuse).read_text(encoding="utf-8"))
        written = engine.presets.import_legacy_preset(preset)
        logger.info("Imported '%s' (%d modules written)", preset.name, written)

    if args.save_preset is not None:
        slot_text, name = args.save_preset
        engine.presets.save_preset(int(slot_text), name)
        logger.info("Saved preset %s as '%s'", slot_text, name)

    if args.load_preset is not None:
        engine.presets.load_preset(args.load_preset)
        # The amp answers with a selection and a dump; the engine refreshes on its own.
        time.sleep(0.3)
        engine.wait_until(ConnectionState.READY, timeout_s=5.0)


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (DEBUG, INFO, WARNING, ERROR). Can also use MUSTANG_LOG_LEVEL env var.",
    )
    parser.add_argument(
        "--config",
        default="config.json",
        help="Path to the JSON config file. Default: config.json.",
    )
    parser.add_argument(
        "--list-devices",
        action="store_true",
        help="List Fender HID devices and exit.",
    )
    parser.add_argument(
        "--product-id",
        type=lambda text: int(text, 0),
        default=None,
        help="USB product id to open (e.g. 0x0014); stored in the config file.",
    )
    parser.add_argument("--load-preset", type=int, default=None, metavar="N", help="Select preset N on the amp.")
    parser.add_argument(
        "--save-preset",
        nargs=2,
        default=None,
        metavar=("N", "NAME"),
        help="Store the current state into preset N under NAME.",
    )
    parser.add_argument(
        "--import-fuse",
        default=None,
        metavar="FILE",
        help="Write a Fender FUSE preset (.fuse XML) to the amp's current state.",
    )
    parser.add_argument("--amp", default=None, metavar="MODEL", help="Switch the amp model (e.g. 'British 80s').")
    parser.add_argument(
        "--effect",
        nargs=2,
        default=None,
        metavar=("SLOT", "MODEL"),
        help="Place an effect model in SLOT (e.g. 4 'Mono Delay').",
    )
    parser.add_argument(
        "--listen",
        action="store_true",
        help="Stay connected and print the state whenever it changes.",
    )
    args = parser.parse_args()

    configure_logging(cli_level=args.log_level)
    logger = logging.getLogger("main")

    config_manager = ConfigManager(args.config)
    if args.product_id is not None:
        config_manager.product_id = args.product_id
    device_config = config_manager.config.device

    if args.list_devices:
        devices = MustangHid(device_config.vendor_id).list_devices()
        logger.info("Fender HID devices:")
        for info in devices:
            logger.info("- %s (0x%04X:0x%04X) %s", info.product_name, info.vendor_id, info.product_id, info.path)
        return

    transport = HidTransport(
        vendor_id=device_config.vendor_id,
        product_id=device_config.product_id,
        read_timeout_ms=device_config.read_timeout_ms,
    )
    engine = SyncEngine(transport, config=config_manager.config.sync)

    if not engine.is_supported:
        logger.error("hidapi is not usable on this system")
        raise SystemExit(1)

    if not engine.connect():
        logger.error("No amplifier found")
        raise SystemExit(1)

    try:
        _print_summary(logger, engine.store.state)
        try:
            _run_actions(args, engine, logger)
        except MustangError as exc:
            logger.error("%s", exc)
            raise SystemExit(1) from exc

        if args.listen:
            logger.info("Listening for changes. Press Ctrl-C to quit.")
            unsubscribe = engine.store.subscribe(lambda state: _print_summary(logger, state))
            try:  # pragma: no cover - interactive loop
                while True:
                    time.sleep(0.25)
            except KeyboardInterrupt:
                logger.info("Interrupted by user; closing connection.")
            finally:
                unsubscribe()
        elif any(
            value is not None
            for value in (args.amp, args.effect, args.import_fuse, args.save_preset, args.load_preset)
        ):
            _print_summary(logger, engine.store.state)
    finally:
        engine.disconnect()


if __name__ == "__main__":
    main()
