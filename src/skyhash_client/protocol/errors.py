from __future__ import annotations


class FrameError(Exception):
    """Base for the signals the parsing steps raise. `decode` never lets them escape."""


class FrameIncomplete(FrameError):
    pass


class FrameMalformed(FrameError):
    pass


class PayloadInvalid(FrameError):
    pass
