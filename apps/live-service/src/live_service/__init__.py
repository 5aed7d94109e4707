"""
Live ingest service.

Turns MediaMTX publish/unpublish hooks into supervised ffmpeg HLS
transcoding sessions and cleans up after them.
"""

__version__ = "0.1.0"
