"""Runtime pieces of the overlay: terminal, config, logging, background work.

The overlay entrypoint lives in :mod:`mdsbrowser.runtime.app`; it is not
re-exported here so that low-level modules can import siblings without
pulling in the picker.
"""
