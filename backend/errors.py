class TrafficError(Exception):
    """Base class for every error raised by the signal backend."""


class InvalidConfig(TrafficError, ValueError):
    """Threshold ordering or lane count outside what the controller supports."""


class EmptyLaneList(TrafficError):
    """Playback was started on a session that has no lanes."""


class InvalidEvent(TrafficError, ValueError):
    """
    Event name the sequencer does not know.

    Known events that simply do not apply to the current phase (pause while
    idle, start while complete, ...) are not errors: they leave the state
    unchanged.
    """


class NoActiveSession(TrafficError):
    pass


class UnsupportedMedia(TrafficError, ValueError):
    pass
