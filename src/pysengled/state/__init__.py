"""State/store layer.

The device cache is the single place where REST snapshots and streamed
status events are merged into per-device attribute maps.
"""

from pysengled.state.store import DeviceCache, DeviceEntry

__all__ = ["DeviceCache", "DeviceEntry"]
