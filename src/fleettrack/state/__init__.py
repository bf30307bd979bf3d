"""State layer.

The single-writer home of live tracking state: latest positions, motion
trails and the activity feed, owned by a :class:`TrackingSession`.
"""
