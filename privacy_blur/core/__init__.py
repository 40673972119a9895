"""Overlay core: pixel buffers, blur backends and the lifecycle state machine."""
