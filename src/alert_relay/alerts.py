from __future__ import annotations

import asyncio
import logging
import os
from typing import Callable, Optional

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]


class LogNotifier:
    """Headless notifier: the "notification" is a WARNING log line."""

    def __call__(self, title: str) -> None:
        logger.warning("ALERT: %s", title)


class PygameAlarm:
    """
    Plays the emergency sound through pygame.mixer.

    Falls back to a generated tone when the sound file is missing.
    """

    def __init__(self, path: str, frequency: int = 880, duration: float = 1.5) -> None:
        self.path = path
        self.frequency = frequency
        self.duration = duration
        self._sound = None

    def _load(self):
        import pygame

        if not pygame.mixer.get_init():
            pygame.mixer.init(frequency=22050, size=-16, channels=2, buffer=512)

        if os.path.exists(self.path):
            return pygame.mixer.Sound(self.path)

        logger.warning("Alarm sound %s not found, using generated tone", self.path)
        return self._generated_tone()

    def _generated_tone(self):
        import numpy as np
        import pygame

        sample_rate = 22050
        t = np.arange(int(sample_rate * self.duration)) / sample_rate
        wave = (np.sin(2 * np.pi * self.frequency * t) * (2**15 - 1)).astype(np.int16)
        return pygame.sndarray.make_sound(np.column_stack([wave, wave]))

    def __call__(self) -> None:
        if self._sound is None:
            self._sound = self._load()
        self._sound.play()


class AlertSink:
    """
    Side effects for one newly mirrored frame: desktop notification + alarm.

    Failures are logged and never propagate into the sync loop.
    """

    def __init__(
        self,
        notifier: Optional[Notifier] = None,
        alarm: Optional[Callable[[], None]] = None,
        title: str = "Emergency Detected ...",
    ) -> None:
        self.notifier = notifier or LogNotifier()
        self.alarm = alarm
        self.title = title

    async def trigger(self, filename: str) -> None:
        try:
            await asyncio.to_thread(self.notifier, self.title)
        except Exception:
            logger.exception("Notification failed for %s", filename)

        if self.alarm is None:
            return
        try:
            await asyncio.to_thread(self.alarm)
        except Exception:
            logger.exception("Alarm playback failed for %s", filename)
