from __future__ import annotations

import argparse
import logging

from .config import RelaySettings
from .logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Alert Relay - emergency frame mirror and viewer feed")
    parser.add_argument("--print-config", action="store_true", help="Print resolved configuration and exit.")
    parser.add_argument("--serve", action="store_true", help="Run the relay headless (HTTP + /ws, log notifications).")
    parser.add_argument("--desktop", action="store_true", help="Run the relay behind a system tray icon.")
    return parser


def run(argv: list[str] | None = None, cfg: RelaySettings | None = None) -> int:
    """
    Relay entrypoint.
    """
    try:
        args = build_parser().parse_args(argv)

        # Load settings from environment / .env
        cfg = cfg or RelaySettings()

        configure_logging(cfg.log_level)

        logger.info("Alert Relay starting")
        logger.info(
            "Resolved config: bucket=%s prefix=%s mirror=%s port=%s",
            cfg.storage_bucket, cfg.image_prefix, cfg.mirror_dir, cfg.port
        )

        if args.print_config:
            print(cfg.model_dump())
            return 0

        if args.desktop:
            from .desktop import run_desktop

            return run_desktop(cfg)

        if args.serve:
            import uvicorn
            from .alerts import AlertSink, PygameAlarm
            from .app import create_app

            sink = AlertSink(alarm=PygameAlarm(cfg.alarm_sound), title=cfg.notification_title)
            app = create_app(cfg, alert_sink=sink)

            logger.info("Backend server running at http://%s:%s", cfg.host, cfg.port)
            uvicorn.run(
                app,
                host=cfg.host,
                port=cfg.port,
                log_level=cfg.log_level.lower(),
            )
            return 0

        logger.info("Nothing to do. Use --print-config, --serve or --desktop.")
        return 0

    except Exception:
        # Log unexpected exceptions so the relay is diagnosable.
        logger.exception("Alert Relay crashed due to an unexpected error")
        if cfg is not None and (cfg.debug or cfg.log_level.upper() == "DEBUG"):
            raise
        return 1


if __name__ == "__main__":
    raise SystemExit(run())
