"""
Intervention Router

Maps a distress level to its intervention track and owns the active
track's lifecycle. At most one track is active at a time.
"""

import threading
from typing import Callable, Optional

from calmcompanion.config.logging_config import get_logger
from calmcompanion.domain.enums.distress_level import DistressLevel, InterventionTrack
from calmcompanion.services.intervention.tracks import InterventionTrackBase

logger = get_logger(__name__)

TrackBuilder = Callable[[InterventionTrack], InterventionTrackBase]


class InterventionRouter:
    """
    Selects and activates intervention tracks.

    Usage:
        router = InterventionRouter(track_factory)
        track_id = router.route(DistressLevel.MODERATE)
        router.exit()
    """

    def __init__(self, track_builder: TrackBuilder) -> None:
        self._build = track_builder
        self._lock = threading.RLock()
        self._active: Optional[InterventionTrackBase] = None

    @property
    def active_track(self) -> Optional[InterventionTrackBase]:
        return self._active

    @property
    def active_track_id(self) -> Optional[InterventionTrack]:
        return self._active.track_id if self._active else None

    def route(self, level: DistressLevel) -> InterventionTrack:
        """
        Activate the track for level, tearing down any active track.

        Returns:
            The selected track id
        """
        track_id = InterventionTrack.from_level(level)

        with self._lock:
            self._teardown_active()
            track = self._build(track_id)
            self._active = track

        logger.info("Routed to intervention track", level=level.value, track=track_id.value)
        track.activate()
        return track_id

    def exit(self) -> None:
        """Tear down the active track. No-op when idle."""
        with self._lock:
            self._teardown_active()

    def _teardown_active(self) -> None:
        track = self._active
        self._active = None
        if track is not None:
            track.teardown()
