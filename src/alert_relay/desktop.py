"""
Desktop shell: tray icon + notifications around the headless relay.

The relay (uvicorn) runs in a background thread; Qt owns the main thread.
"""

from __future__ import annotations

import logging
import sys
import threading
import webbrowser

import uvicorn
from PySide6.QtCore import QObject, Signal, Slot
from PySide6.QtGui import QAction, QIcon
from PySide6.QtWidgets import QApplication, QMenu, QStyle, QSystemTrayIcon

from .alerts import AlertSink, PygameAlarm
from .app import create_app
from .config import RelaySettings

logger = logging.getLogger(__name__)


class QtTrayNotifier(QObject):
    """Tray icon that shows relay alerts as desktop notifications."""

    # Signals
    alert_requested = Signal(str)
    quit_requested = Signal()

    def __init__(self, app: QApplication, viewer_url: str):
        super().__init__()
        self.viewer_url = viewer_url

        icon = app.style().standardIcon(QStyle.StandardPixmap.SP_MessageBoxWarning)
        self.tray = QSystemTrayIcon(QIcon(icon), app)
        self.tray.setToolTip("Guardian Gesture")

        self.menu = QMenu()
        action_show = QAction("Show App", self.menu)
        action_show.triggered.connect(self.show_viewer)
        self.menu.addAction(action_show)

        action_quit = QAction("Quit", self.menu)
        action_quit.triggered.connect(self.quit_requested.emit)
        self.menu.addAction(action_quit)

        self.tray.setContextMenu(self.menu)
        self.tray.activated.connect(self._on_activated)

        # Queued across threads: notify() is called from the relay's worker threads.
        self.alert_requested.connect(self._show_alert)

    def __call__(self, title: str) -> None:
        self.notify(title)

    def notify(self, title: str) -> None:
        self.alert_requested.emit(title)

    @Slot(str)
    def _show_alert(self, title: str):
        self.tray.showMessage(title, "", QSystemTrayIcon.MessageIcon.Critical)

    @Slot()
    def show_viewer(self):
        webbrowser.open(self.viewer_url)

    def _on_activated(self, reason):
        if reason == QSystemTrayIcon.ActivationReason.Trigger:
            self.show_viewer()

    def show(self):
        self.tray.show()


def run_desktop(cfg: RelaySettings) -> int:
    """Run the relay behind a tray icon until "Quit"."""
    qt_app = QApplication.instance() or QApplication(sys.argv)
    qt_app.setApplicationName("Guardian Gesture")
    qt_app.setQuitOnLastWindowClosed(False)

    notifier = QtTrayNotifier(qt_app, cfg.viewer_url)
    sink = AlertSink(notifier=notifier, alarm=PygameAlarm(cfg.alarm_sound), title=cfg.notification_title)

    server = uvicorn.Server(
        uvicorn.Config(
            create_app(cfg, alert_sink=sink),
            host=cfg.host,
            port=cfg.port,
            log_level=cfg.log_level.lower(),
        )
    )
    thread = threading.Thread(target=server.run, name="relay-server", daemon=True)

    def shutdown():
        logger.info("Quit requested from tray")
        server.should_exit = True
        qt_app.quit()

    notifier.quit_requested.connect(shutdown)
    notifier.show()

    logger.info("Starting relay at %s", cfg.viewer_url)
    thread.start()
    code = qt_app.exec()
    server.should_exit = True
    thread.join(timeout=10)
    return code
