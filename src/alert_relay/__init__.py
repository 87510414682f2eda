"""
Alert Relay package.

This package contains the desktop-side relay service that:
- polls the cloud object store for emergency frames
- mirrors new frames to local disk
- fans new-image and location events out to connected viewers
- raises a desktop notification + alarm on every new frame
"""
